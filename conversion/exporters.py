import logging
import pathlib
import shutil
import numpy as np

from pbrt import TriangleMesh
from .errors import ConversionError

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------------------------

def _face_format(has_normals: bool, has_uvs: bool) -> str:
    match has_normals, has_uvs:
        case True, True:
            return "f {0}/{0}/{0} {1}/{1}/{1} {2}/{2}/{2}\n"
        case True, False:
            return "f {0}//{0} {1}//{1} {2}//{2}\n"
        case False, True:
            return "f {0}/{0} {1}/{1} {2}/{2}\n"
        case _:
            return "f {0} {1} {2}\n"

def export_mesh(path: pathlib.Path, mesh: TriangleMesh) -> None:
    """
    Write a triangle mesh as a Wavefront OBJ file, replacing any existing file.

    Args:
        path: the output file path
        mesh: the mesh to write

    Raises:
        ConversionError: if the mesh has no indices or the index count is not a multiple of 3
    """

    if mesh.indices is None:
        raise ConversionError("Mesh indices are null.")
    if len(mesh.indices) % 3 != 0:
        raise ConversionError(f"Invalid number of indices: {len(mesh.indices)}.")

    positions = np.asarray(mesh.P, dtype=float).reshape(-1, 3).tolist()
    normals = None if mesh.N is None else np.asarray(mesh.N, dtype=float).reshape(-1, 3).tolist()
    uvs = None if mesh.uv is None else np.asarray(mesh.uv, dtype=float).reshape(-1, 2).tolist()
    triangles = (np.asarray(mesh.indices, dtype=np.int64).reshape(-1, 3) + 1).tolist()
    face = _face_format(normals is not None, uvs is not None)

    with open(path, "w") as f:
        f.write("# Converted from pbrt triangle mesh\n")
        for x, y, z in positions:
            f.write(f"v {x} {y} {z}\n")
        for x, y, z in normals or []:
            f.write(f"vn {x} {y} {z}\n")
        for u, v in uvs or []:
            f.write(f"vt {u} {v}\n")
        for i0, i1, i2 in triangles:
            f.write(face.format(i0, i1, i2))

def export_image(source: str | pathlib.Path,
                 base_dir: pathlib.Path,
                 texture_dir_name: str,
                 index: int,
                 prefix: str = "") -> str:
    """
    Copy an image referenced by the scene into the exported texture directory.

    The copy is named by the zero-padded index of the referencing entity followed by the
    original file name, so entities referencing different files with the same name never
    collide. Existing copies are overwritten.

    Args:
        source: the image path, relative paths are resolved against base_dir
        base_dir: the directory of the scene file
        texture_dir_name: the name of the texture directory inside base_dir
        index: the index of the referencing entity
        prefix: an optional prefix distinguishing entity categories

    Returns:
        copied_file: the path of the copy relative to base_dir
    """

    file = pathlib.Path(source)
    if not file.is_absolute():
        file = base_dir / file
    try:
        file = file.resolve(strict=True)
    except OSError as e:
        raise ConversionError(f"Failed to resolve image file path: {e}.") from e

    copied_file = f"{texture_dir_name}/{prefix}{index:05}_{file.name}"
    try:
        (base_dir / texture_dir_name).mkdir(parents=True, exist_ok=True)
        destination = base_dir / copied_file
        if not destination.exists() or not destination.samefile(file):
            shutil.copyfile(file, destination)
    except OSError as e:
        raise ConversionError(f"Failed to copy image file: {e}.") from e

    logger.info(f"Copied image {file} -> {copied_file}")
    return copied_file
