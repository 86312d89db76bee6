import copy
import numpy as np

from pbrt import Transform

_IDENTITY = np.eye(4)

# The scene format maps the +Z pole of an environment map upwards, the renderer uses +Y
ENVIRONMENT_BASIS = [
    {"impl": "SRT", "prop": {"rotate": [1, 0, 0, -90]}},
    {"impl": "SRT", "prop": {"scale": [1, 1, -1]}},
    {"impl": "SRT", "prop": {"rotate": [0, 1, 0, 90]}},
]

# Negates camera-space X
CAMERA_MIRROR = {"impl": "SRT", "prop": {"scale": [-1, 1, 1]}}

# ----------------------------------------------------------------------------------------

def _to_list(v: np.ndarray) -> list[float]:
    return [float(x) for x in v]

def is_identity(matrix: np.ndarray) -> bool:
    # Exact comparison, no tolerance
    return bool(np.array_equal(np.asarray(matrix, dtype=float), _IDENTITY))

def to_matrix_node(transform: Transform) -> dict | None:
    """
    Convert a transform into a generic matrix node.

    Only the start of an animated transform is used.

    Args:
        transform: the source transform

    Returns:
        node: the matrix node with the 16 row-major entries, or None for the identity
    """

    if is_identity(transform.start):
        return None
    return {
        "impl": "Matrix",
        "prop": {
            "m": _to_list(np.asarray(transform.start, dtype=float).reshape(-1))
        }
    }

def stack_nodes(*nodes: dict | None) -> dict | None:
    """
    Compose transform nodes, the first one applied first.

    Args:
        nodes: the transform nodes, None entries meaning identity

    Returns:
        node: None if all nodes are None, the single node if only one is given, or a stack node
    """

    nodes = [node for node in nodes if node is not None]
    if not nodes:
        return None
    if len(nodes) == 1:
        return nodes[0]
    return {"impl": "Stack", "prop": {"transforms": nodes}}

def to_camera_node(transform: Transform) -> dict:
    """
    Convert a camera-to-world transform into a view node.

    The scene format's camera looks down +Z with +Y up and +X to the right of the image,
    while the renderer takes right = front x up. When the transformed basis disagrees, a
    mirror of camera-space X is applied before the view.

    Args:
        transform: the camera-to-world transform

    Returns:
        node: the view node, possibly stacked after a mirroring scale node
    """

    m = np.asarray(transform.start, dtype=float)
    normal_matrix = np.linalg.inv(m[:3, :3]).T

    def transform_normal(n) -> np.ndarray:
        v = normal_matrix @ np.asarray(n, dtype=float)
        return v / np.linalg.norm(v)

    eye = (m @ np.array([0.0, 0.0, 0.0, 1.0]))[:3]
    right = transform_normal([1.0, 0.0, 0.0])
    up = transform_normal([0.0, 1.0, 0.0])
    front = transform_normal([0.0, 0.0, 1.0])

    view = {
        "impl": "View",
        "prop": {
            "origin": _to_list(eye),
            "front": _to_list(front),
            "up": _to_list(up),
        }
    }

    if np.dot(np.cross(front, up), right) < 0.0:
        return stack_nodes(copy.deepcopy(CAMERA_MIRROR), view)
    return view

def to_environment_node(transform: Transform) -> dict:
    """
    Convert an environment light's transform, applying the fixed change of basis between
    the two environment map conventions first.

    Args:
        transform: the light-to-world transform

    Returns:
        node: the stacked transform node
    """

    return stack_nodes(*copy.deepcopy(ENVIRONMENT_BASIS), to_matrix_node(transform))
