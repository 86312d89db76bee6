import logging
import pathlib
import numpy as np
import trimesh
import trimesh.remesh

from .errors import TriangulationError
from .model import HeightField, LoopSubdiv, PLYMesh, Scene, Shape, TriangleMesh

logger = logging.getLogger(__name__)

# Shape kinds that can be converted into triangle meshes in place
TRIANGULATABLE_KINDS = {
    "plymesh": PLYMesh,
    "heightfield": HeightField,
    "loopsubdiv": LoopSubdiv,
}

# ----------------------------------------------------------------------------------------

def _common_fields(shape: Shape) -> dict:
    return {
        "shape_to_world": shape.shape_to_world,
        "material": shape.material,
        "area_light": shape.area_light,
        "inside_medium": shape.inside_medium,
        "outside_medium": shape.outside_medium,
        "reverse_orientation": shape.reverse_orientation,
        "object": shape.object,
        "alpha": shape.alpha,
    }

def _has_properties(vertex_data, names: tuple[str, ...]) -> bool:
    # ASCII files give a dict of columns, binary files a structured array
    if vertex_data is None:
        return False
    if isinstance(vertex_data, dict):
        properties = vertex_data.keys()
    else:
        properties = getattr(getattr(vertex_data, "dtype", None), "names", None) or ()
    return all(n in properties for n in names)

def _ply_to_mesh(shape: PLYMesh, base_dir: pathlib.Path) -> TriangleMesh:
    path = pathlib.Path(shape.filename)
    if not path.is_absolute():
        path = base_dir / path
    if not path.is_file():
        raise TriangulationError(f"PLY file '{path}' is missing.")

    try:
        mesh = trimesh.load(path, force="mesh", process=False)
    except Exception as e:
        raise TriangulationError(f"Failed to load PLY file '{path}': {e}") from e

    # Only keep normals and texture coordinates actually stored in the file
    normals = None
    vertex_data = mesh.metadata.get("_ply_raw", {}).get("vertex", {}).get("data")
    if _has_properties(vertex_data, ("nx", "ny", "nz")):
        normals = np.stack([np.asarray(vertex_data[n], dtype=float).reshape(-1) for n in ("nx", "ny", "nz")],
                           axis=1).reshape(-1)
        if len(normals) != mesh.vertices.size:
            logger.warning(f"Ignored normals of PLY file '{path}' not matching its vertices.")
            normals = None
    uv = getattr(mesh.visual, "uv", None)

    return TriangleMesh(
        **_common_fields(shape),
        indices=np.asarray(mesh.faces, dtype=np.int64).reshape(-1),
        P=np.asarray(mesh.vertices, dtype=float).reshape(-1),
        N=normals,
        uv=None if uv is None else np.asarray(uv, dtype=float).reshape(-1),
    )

def _heightfield_to_mesh(shape: HeightField) -> TriangleMesh:
    nu, nv = shape.nu, shape.nv
    if nu < 2 or nv < 2 or shape.Pz is None or len(shape.Pz) != nu * nv:
        raise TriangulationError(f"Invalid height field of size {nu}x{nv}.")

    u, v = np.meshgrid(np.arange(nu) / (nu - 1), np.arange(nv) / (nv - 1))
    positions = np.stack([u.reshape(-1), v.reshape(-1), np.asarray(shape.Pz, dtype=float)], axis=1)
    uv = np.stack([u.reshape(-1), v.reshape(-1)], axis=1)

    indices = []
    for y in range(nv - 1):
        for x in range(nu - 1):
            v00 = x + y * nu
            v10 = v00 + 1
            v01 = v00 + nu
            v11 = v01 + 1
            indices.extend([v00, v10, v11, v00, v11, v01])

    return TriangleMesh(
        **_common_fields(shape),
        indices=np.asarray(indices, dtype=np.int64),
        P=positions.reshape(-1),
        uv=uv.reshape(-1),
    )

def _loop_subdiv_to_mesh(shape: LoopSubdiv) -> TriangleMesh:
    if shape.P is None or shape.indices is None or len(shape.indices) % 3 != 0 or len(shape.P) % 3 != 0:
        raise TriangulationError("Invalid Loop subdivision control mesh.")

    vertices = np.asarray(shape.P, dtype=float).reshape(-1, 3)
    faces = np.asarray(shape.indices, dtype=np.int64).reshape(-1, 3)
    if shape.levels > 0:
        try:
            vertices, faces = trimesh.remesh.subdivide_loop(vertices, faces, iterations=shape.levels)
        except Exception as e:
            raise TriangulationError(f"Failed to subdivide Loop surface: {e}") from e

    return TriangleMesh(
        **_common_fields(shape),
        indices=np.asarray(faces, dtype=np.int64).reshape(-1),
        P=np.asarray(vertices, dtype=float).reshape(-1),
    )

# ----------------------------------------------------------------------------------------

def shapes_to_triangle_mesh(scene: Scene, kinds: list[str], base_dir: pathlib.Path) -> None:
    """
    Replace shapes of the requested kinds by equivalent triangle meshes, in place.

    Args:
        scene: the scene whose shapes are converted
        kinds: the shape kinds to convert, keys of TRIANGULATABLE_KINDS
        base_dir: the directory relative mesh files are resolved against

    Raises:
        TriangulationError: if any requested shape cannot be triangulated
    """

    unknown = [kind for kind in kinds if kind not in TRIANGULATABLE_KINDS]
    if unknown:
        raise TriangulationError(f"Cannot triangulate shape kinds: {unknown}")
    classes = tuple(TRIANGULATABLE_KINDS[kind] for kind in kinds)

    for i, shape in enumerate(scene.shapes):
        if not isinstance(shape, classes):
            continue
        match shape:
            case PLYMesh():
                scene.shapes[i] = _ply_to_mesh(shape, base_dir)
            case HeightField():
                scene.shapes[i] = _heightfield_to_mesh(shape)
            case LoopSubdiv():
                scene.shapes[i] = _loop_subdiv_to_mesh(shape)
        logger.info(f"Triangulated shape at index {i} ({len(scene.shapes[i].indices) // 3} triangles).")
