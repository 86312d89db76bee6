import numpy as np
import pytest

from pbrt import Transform
from conversion.transforms import (to_matrix_node, stack_nodes, to_camera_node, to_environment_node,
                                   CAMERA_MIRROR, ENVIRONMENT_BASIS)

def test_identity_is_elided():
    assert to_matrix_node(Transform()) is None

@pytest.mark.parametrize("cell", [0, 3, 7, 12, 15])
def test_any_changed_cell_is_emitted_row_major(cell):
    m = np.eye(4).reshape(-1)
    m[cell] += 0.5
    node = to_matrix_node(Transform.from_matrix(m))
    assert node["impl"] == "Matrix"
    assert node["prop"]["m"] == pytest.approx(list(m))
    assert len(node["prop"]["m"]) == 16

def test_tiny_deviation_is_not_identity():
    m = np.eye(4)
    m[0, 1] = 1e-12
    assert to_matrix_node(Transform.from_matrix(m)) is not None

def test_only_the_start_transform_is_used():
    end = np.eye(4)
    end[0, 3] = 2.0
    assert to_matrix_node(Transform(np.eye(4), end)) is None

def test_stack_nodes():
    a = {"impl": "SRT", "prop": {"scale": 2.0}}
    b = {"impl": "SRT", "prop": {"translate": [1, 2, 3]}}
    assert stack_nodes(None, None) is None
    assert stack_nodes(None, a) is a
    assert stack_nodes(a, None, b) == {"impl": "Stack", "prop": {"transforms": [a, b]}}

def test_camera_node_for_identity_is_mirrored_view():
    # +X right, +Y up, +Z front is left-handed for front x up = right
    node = to_camera_node(Transform())
    assert node["impl"] == "Stack"
    mirror, view = node["prop"]["transforms"]
    assert mirror == CAMERA_MIRROR
    assert view["impl"] == "View"
    assert view["prop"]["origin"] == pytest.approx([0.0, 0.0, 0.0])
    assert view["prop"]["front"] == pytest.approx([0.0, 0.0, 1.0])
    assert view["prop"]["up"] == pytest.approx([0.0, 1.0, 0.0])

def test_camera_node_without_mirror_for_flipped_x():
    m = np.diag([-1.0, 1.0, 1.0, 1.0])
    m[:3, 3] = [1.0, 2.0, 3.0]
    node = to_camera_node(Transform.from_matrix(m))
    assert node["impl"] == "View"
    assert node["prop"]["origin"] == pytest.approx([1.0, 2.0, 3.0])

def test_camera_node_normalizes_directions():
    node = to_camera_node(Transform.from_matrix(np.diag([-2.0, 3.0, 4.0, 1.0])))
    assert np.linalg.norm(node["prop"]["front"]) == pytest.approx(1.0)
    assert np.linalg.norm(node["prop"]["up"]) == pytest.approx(1.0)

def test_environment_node():
    node = to_environment_node(Transform())
    assert node["impl"] == "Stack"
    assert node["prop"]["transforms"] == ENVIRONMENT_BASIS

    m = np.eye(4)
    m[1, 3] = 5.0
    node = to_environment_node(Transform.from_matrix(m))
    transforms = node["prop"]["transforms"]
    assert transforms[:3] == ENVIRONMENT_BASIS
    assert transforms[3]["impl"] == "Matrix"

def test_returned_nodes_are_not_shared():
    node = to_environment_node(Transform())
    node["prop"]["transforms"][0]["prop"]["rotate"][3] = 0
    assert ENVIRONMENT_BASIS[0]["prop"]["rotate"][3] == -90
