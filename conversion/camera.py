import logging
import math
import pathlib

from pbrt import Scene, PerspectiveCamera, UnsupportedCamera
from .context import ConversionContext
from .document import SceneDocument, entity
from .transforms import to_camera_node

logger = logging.getLogger(__name__)

FILTER_IMPLS = {
    "box": "Box",
    "gaussian": "Gaussian",
    "mitchell": "Mitchell",
    "sinc": "LanczosSinc",
    "triangle": "Triangle",
}

MIN_CLAMP = 16.0
MAX_CLAMP = 65536.0

# ========================================================================================

def convert_film(scene: Scene) -> dict:
    film = scene.film
    if film.cropwindow != (0.0, 1.0, 0.0, 1.0):
        logger.warning(f"Ignored unsupported film crop window {list(film.cropwindow)}.")
    if film.scale > 0.0:
        exposure = math.log2(film.scale)
    else:
        logger.warning(f"Ignored non-positive film scale {film.scale}.")
        exposure = 0.0
    max_luminance = MAX_CLAMP if film.maxsampleluminance <= 0.0 else film.maxsampleluminance
    return {
        "impl": "Color",
        "prop": {
            "resolution": [film.xresolution, film.yresolution],
            "exposure": exposure,
            "clamp": min(max(max_luminance, MIN_CLAMP), MAX_CLAMP),
        }
    }

def convert_filter(scene: Scene) -> dict | None:
    pixel_filter = scene.filter
    impl = FILTER_IMPLS.get(pixel_filter.kind)
    if impl is None:
        logger.warning(f"Ignored unsupported pixel filter '{pixel_filter.kind}'.")
        return None
    if pixel_filter.xwidth == pixel_filter.ywidth:
        radius = pixel_filter.xwidth
    else:
        radius = [pixel_filter.xwidth, pixel_filter.ywidth]
    return {"impl": impl, "prop": {"radius": radius}}

def vertical_fov(camera: PerspectiveCamera, scene: Scene) -> float:
    """
    Get the vertical field of view of a perspective camera in degrees.

    The declared field of view spans the shorter image axis, which is the horizontal one
    when the image is narrower than tall.
    """

    aspect = camera.frameaspectratio or scene.film.xresolution / scene.film.yresolution
    if aspect >= 1.0:
        return camera.fov
    half = math.radians(camera.fov) / 2.0
    return math.degrees(2.0 * math.atan(math.tan(half) / aspect))

def output_file(ctx: ConversionContext) -> str:
    filename = ctx.scene.film.filename
    if not filename:
        return ctx.cfg.default_output_file
    return pathlib.PurePath(filename).with_suffix(".exr").as_posix()

# ----------------------------------------------------------------------------------------

def convert_camera(ctx: ConversionContext, doc: SceneDocument) -> SceneDocument:
    """
    Convert the camera together with its film, filter and sampling settings.

    A positive lens radius yields a thin lens camera with a focal length derived from the
    vertical field of view and the reference sensor height, otherwise a pinhole camera.
    """

    scene = ctx.scene
    camera = scene.camera
    match camera:
        case PerspectiveCamera():
            pass
        case UnsupportedCamera(kind=kind):
            logger.warning(f"Ignored unsupported camera type '{kind}', using a pinhole camera instead.")
            camera = PerspectiveCamera(camera_to_world=camera.camera_to_world)
    if camera.screenwindow is not None:
        logger.warning(f"Ignored unsupported camera screen window {list(camera.screenwindow)}.")

    fov = vertical_fov(camera, scene)
    prop = {}
    if camera.lensradius > 0.0:
        impl = "ThinLens"
        # tan(fov / 2) = (h / 2) / f
        focal_length = (ctx.cfg.sensor_height / 2.0) / math.tan(math.radians(fov) / 2.0)
        prop["focal_length"] = focal_length
        prop["aperture"] = focal_length / (2000.0 * camera.lensradius)
        prop["focus_distance"] = camera.focaldistance
    else:
        impl = "Pinhole"
        prop["fov"] = fov

    prop["transform"] = to_camera_node(camera.camera_to_world)
    prop["film"] = convert_film(scene)
    if (pixel_filter := convert_filter(scene)) is not None:
        prop["filter"] = pixel_filter
    prop["file"] = output_file(ctx)
    prop["spp"] = scene.sampler.pixelsamples or ctx.cfg.default_spp

    doc.set_cameras([entity("Camera", impl, prop)])
    return doc
