import functools
import logging
import pathlib
from typing import Callable

from pbrt import load_scene, shapes_to_triangle_mesh, SceneLoadError
from .area_lights import convert_area_lights
from .assembler import write_scene
from .camera import convert_camera
from .config import ConversionConfig
from .context import ConversionContext
from .document import SceneDocument
from .lights import convert_lights
from .logging_utils import FileLoggingContext
from .materials import convert_materials
from .shapes import convert_shapes
from .textures import convert_textures

logger = logging.getLogger(__name__)

Stage = Callable[[ConversionContext, SceneDocument], SceneDocument]

# Later stages reference the names produced by earlier ones
STAGES: tuple[Stage, ...] = (
    convert_textures,
    convert_materials,
    convert_area_lights,
    convert_shapes,
    convert_lights,
    convert_camera,
)

SUPPORTED_INTEGRATORS = ("path", "volpath")

# ========================================================================================

def integrator_node(ctx: ConversionContext) -> dict:
    integrator = ctx.scene.integrator
    if integrator.kind not in SUPPORTED_INTEGRATORS:
        logger.warning(f"Replaced unsupported integrator '{integrator.kind}' with '{ctx.cfg.integrator_impl}'.")
    return {
        "impl": ctx.cfg.integrator_impl,
        "prop": {
            "depth": integrator.maxdepth or ctx.cfg.integrator_depth,
            "rr_depth": ctx.cfg.integrator_rr_depth,
        }
    }

def convert_scene(ctx: ConversionContext) -> SceneDocument:
    """
    Run all conversion stages in order on a fresh document.

    Args:
        ctx: the conversion context

    Returns:
        doc: the converted document
    """

    logger.info(f"Time: {ctx.scene.start_time} -> {ctx.scene.end_time}")
    logger.info(f"Medium count: {len(ctx.scene.mediums)}")
    return functools.reduce(lambda doc, stage: stage(ctx, doc), STAGES, SceneDocument(integrator_node(ctx)))

def convert_scene_file(scene_file: str | pathlib.Path, cfg: ConversionConfig) -> tuple[pathlib.Path, pathlib.Path]:
    """
    Convert a scene file, writing the exported assets and both documents beside it.

    Args:
        scene_file: the path of the scene file
        cfg: the conversion configuration

    Returns:
        library_file: the path of the written library document
        entry_file: the path of the written entry document
    """

    try:
        scene_file = pathlib.Path(scene_file).resolve(strict=True)
    except OSError as e:
        raise SceneLoadError(f"Failed to open scene file: {e}", str(scene_file), 0, 0) from e

    if cfg.log_to_file:
        with FileLoggingContext(scene_file.with_name(f"{scene_file.stem}.convert.log")):
            return _convert(scene_file, cfg)
    return _convert(scene_file, cfg)

def _convert(scene_file: pathlib.Path, cfg: ConversionConfig) -> tuple[pathlib.Path, pathlib.Path]:
    logger.info(f"Loading {scene_file}")
    scene = load_scene(scene_file)
    shapes_to_triangle_mesh(scene, cfg.triangulate_shapes, scene_file.parent)

    ctx = ConversionContext(scene, scene_file.parent, cfg)
    doc = convert_scene(ctx)
    return write_scene(doc, ctx.base_dir, scene_file.stem, cfg.json_indent)
