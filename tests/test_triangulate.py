import numpy as np
import pytest

from pbrt import (Scene, HeightField, LoopSubdiv, PLYMesh, Sphere, TriangleMesh, TriangulationError,
                  shapes_to_triangle_mesh)

def test_heightfield_grid(tmp_path):
    scene = Scene(shapes=[HeightField(nu=3, nv=2, Pz=np.arange(6, dtype=float), material=4), Sphere()])
    shapes_to_triangle_mesh(scene, ["heightfield"], tmp_path)

    mesh, sphere = scene.shapes
    assert isinstance(mesh, TriangleMesh)
    assert isinstance(sphere, Sphere)
    assert mesh.material == 4
    assert mesh.num_vertices == 6
    assert mesh.num_indices == 2 * 2 * 3
    positions = mesh.P.reshape(-1, 3)
    assert positions[5] == pytest.approx([1.0, 1.0, 5.0])
    assert mesh.uv.reshape(-1, 2)[1] == pytest.approx([0.5, 0.0])

def test_invalid_heightfield(tmp_path):
    scene = Scene(shapes=[HeightField(nu=2, nv=2, Pz=np.zeros(3))])
    with pytest.raises(TriangulationError):
        shapes_to_triangle_mesh(scene, ["heightfield"], tmp_path)

def test_loop_subdivision(tmp_path):
    P = np.array([0, 0, 0, 1, 0, 0, 0, 1, 0, 0, 0, 1], dtype=float)
    indices = np.array([0, 2, 1, 0, 1, 3, 0, 3, 2, 1, 2, 3])
    scene = Scene(shapes=[LoopSubdiv(levels=1, P=P, indices=indices)])
    shapes_to_triangle_mesh(scene, ["loopsubdiv"], tmp_path)

    mesh = scene.shapes[0]
    assert isinstance(mesh, TriangleMesh)
    assert mesh.num_indices == 4 * 4 * 3

def test_ply_mesh(tmp_path):
    (tmp_path / "tri.ply").write_text("\n".join([
        "ply",
        "format ascii 1.0",
        "element vertex 3",
        "property float x",
        "property float y",
        "property float z",
        "element face 1",
        "property list uchar int vertex_indices",
        "end_header",
        "0 0 0",
        "1 0 0",
        "0 1 0",
        "3 0 1 2",
        "",
    ]))
    scene = Scene(shapes=[PLYMesh(filename="tri.ply")])
    shapes_to_triangle_mesh(scene, ["plymesh"], tmp_path)

    mesh = scene.shapes[0]
    assert isinstance(mesh, TriangleMesh)
    assert mesh.num_vertices == 3
    assert np.array_equal(mesh.indices, [0, 1, 2])
    assert mesh.N is None

def test_missing_ply_file(tmp_path):
    scene = Scene(shapes=[PLYMesh(filename="missing.ply")])
    with pytest.raises(TriangulationError):
        shapes_to_triangle_mesh(scene, ["plymesh"], tmp_path)

def test_kinds_not_requested_are_kept(tmp_path):
    scene = Scene(shapes=[PLYMesh(filename="missing.ply")])
    shapes_to_triangle_mesh(scene, ["heightfield"], tmp_path)
    assert isinstance(scene.shapes[0], PLYMesh)

def test_unknown_kind(tmp_path):
    with pytest.raises(TriangulationError):
        shapes_to_triangle_mesh(Scene(), ["nurbs"], tmp_path)

def test_binary_ply_mesh_with_normals(tmp_path):
    header = "\n".join([
        "ply",
        "format binary_little_endian 1.0",
        "element vertex 3",
        "property float x",
        "property float y",
        "property float z",
        "property float nx",
        "property float ny",
        "property float nz",
        "element face 1",
        "property list uchar int vertex_indices",
        "end_header",
        "",
    ]).encode("ascii")
    vertices = np.zeros(3, dtype=[(n, "<f4") for n in ("x", "y", "z", "nx", "ny", "nz")])
    vertices["x"] = [0.0, 1.0, 0.0]
    vertices["y"] = [0.0, 0.0, 1.0]
    vertices["nz"] = 1.0
    faces = np.zeros(1, dtype=[("count", "u1"), ("indices", "<i4", (3,))])
    faces["count"] = 3
    faces["indices"] = [0, 1, 2]
    (tmp_path / "tri.ply").write_bytes(header + vertices.tobytes() + faces.tobytes())

    scene = Scene(shapes=[PLYMesh(filename="tri.ply")])
    shapes_to_triangle_mesh(scene, ["plymesh"], tmp_path)

    mesh = scene.shapes[0]
    assert isinstance(mesh, TriangleMesh)
    assert mesh.num_vertices == 3
    assert np.array_equal(mesh.indices, [0, 1, 2])
    assert mesh.N.reshape(-1, 3) == pytest.approx(np.tile([0.0, 0.0, 1.0], (3, 1)))

def test_ascii_ply_mesh_with_normals(tmp_path):
    (tmp_path / "tri.ply").write_text("\n".join([
        "ply",
        "format ascii 1.0",
        "element vertex 3",
        "property float x",
        "property float y",
        "property float z",
        "property float nx",
        "property float ny",
        "property float nz",
        "element face 1",
        "property list uchar int vertex_indices",
        "end_header",
        "0 0 0 0 0 1",
        "1 0 0 0 0 1",
        "0 1 0 0 0 1",
        "3 0 1 2",
        "",
    ]))
    scene = Scene(shapes=[PLYMesh(filename="tri.ply")])
    shapes_to_triangle_mesh(scene, ["plymesh"], tmp_path)

    assert scene.shapes[0].N.reshape(-1, 3) == pytest.approx(np.tile([0.0, 0.0, 1.0], (3, 1)))
