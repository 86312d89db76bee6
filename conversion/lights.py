import logging
import math
import numpy as np

from pbrt import Light, PointLight, DistantLight, InfiniteLight, UnsupportedLight
from .context import ConversionContext
from .document import SceneDocument, entity, constant_texture
from .errors import ConversionError
from .exporters import export_image
from .naming import reference, light_name
from .transforms import to_matrix_node, to_environment_node, stack_nodes

logger = logging.getLogger(__name__)

ENVIRONMENT_GROUP_NAME = "EnvironmentGroup"

# ========================================================================================

def _emission(light: Light) -> tuple[float, float, float] | None:
    match light:
        case PointLight(I=I):
            return I
        case DistantLight(L=L) | InfiniteLight(L=L):
            return L
        case _:
            return None

def has_visible_effect(light: Light) -> bool:
    """
    Check whether a light contributes anything. A light without any positive scale channel,
    or without any positive channel of its scaled emission, has no effect.
    """

    scale = np.asarray(light.scale, dtype=float)
    if not np.any(scale > 0.0):
        return False
    emission = _emission(light)
    if emission is None:
        return True
    return bool(np.any(scale * np.asarray(emission, dtype=float) > 0.0))

def _to_list(v) -> list[float]:
    return [float(x) for x in v]

# ----------------------------------------------------------------------------------------

def convert_point_light(ctx: ConversionContext, light: PointLight) -> dict:
    """
    Convert a point light into a small invisible emissive sphere.

    Args:
        ctx: the conversion context
        light: the point light

    Returns:
        record: the sphere shape record
    """

    radius = ctx.cfg.point_light_radius
    # Matches the emitted power of the point light
    radiance = np.asarray(light.scale, dtype=float) * np.asarray(light.I, dtype=float) / (math.pi * radius * radius)
    position = {"impl": "SRT", "prop": {"scale": radius, "translate": _to_list(light.from_)}}
    return entity("Shape", "Sphere", {
        "subdivision": ctx.cfg.sphere_subdivision,
        "transform": stack_nodes(position, to_matrix_node(light.light_to_world)),
        "light": entity("Light", "Diffuse", {"emission": constant_texture(_to_list(radiance))}),
        "visible": False,
    })

def convert_distant_light(index: int, light: DistantLight) -> dict | None:
    m = np.asarray(light.light_to_world.start, dtype=float)
    # Points from the scene towards the light
    direction = m[:3, :3] @ (np.asarray(light.from_, dtype=float) - np.asarray(light.to, dtype=float))
    length = np.linalg.norm(direction)
    if length == 0.0:
        logger.warning(f"Ignored distant light at index {index} with coincident from and to points.")
        return None
    direction = direction / length

    # Radiance over the full sphere of directions
    L = np.asarray(light.L, dtype=float) / (4.0 * math.pi)
    scale = _to_list(light.scale)
    if scale[0] == scale[1] == scale[2]:
        emission = constant_texture(_to_list(scale[0] * L))
    else:
        emission = entity("Texture", "Scale", {"base": constant_texture(_to_list(L)), "scale": scale})
    return entity("Environment", "Directional", {
        "direction": _to_list(direction),
        "emission": emission,
    })

def convert_infinite_light(ctx: ConversionContext, index: int, light: InfiniteLight) -> dict:
    scale = np.asarray(light.scale, dtype=float)
    if light.mapname is not None:
        copied_file = export_image(light.mapname, ctx.base_dir, ctx.cfg.texture_dir_name, index, prefix="env_")
        emission = entity("Texture", "Image", {"file": copied_file})
        # The map is tinted by L
        scale = scale * np.asarray(light.L, dtype=float)
    else:
        emission = constant_texture(_to_list(light.L))
    return entity("Environment", "Spherical", {
        "emission": emission,
        "scale": _to_list(scale),
        "transform": to_environment_node(light.light_to_world),
    })

# ----------------------------------------------------------------------------------------

def convert_lights(ctx: ConversionContext, doc: SceneDocument) -> SceneDocument:
    """
    Convert point lights into visible-root shapes and distant and infinite lights into
    environments. Several environments are merged into one group.
    """

    environments = []
    for i, light in enumerate(ctx.scene.lights):
        if not has_visible_effect(light):
            logger.warning(f"Ignored light at index {i} with non-positive scale or emission.")
            continue
        match light:
            case PointLight():
                name = light_name("PointLight", i)
                doc.add(name, convert_point_light(ctx, light))
                doc.add_visible_shape(name)
            case DistantLight():
                record = convert_distant_light(i, light)
                if record is None:
                    continue
                name = light_name("Environment", i)
                doc.add(name, record)
                environments.append(name)
            case InfiniteLight():
                name = light_name("Environment", i)
                doc.add(name, convert_infinite_light(ctx, i, light))
                environments.append(name)
            case UnsupportedLight(kind=kind):
                logger.warning(f"Ignored unsupported light at index {i} with type '{kind}'.")
            case _:
                raise ConversionError(f"Unknown light type '{type(light).__name__}' at index {i}.")

    if len(environments) == 1:
        doc.set_environment(environments[0])
    elif len(environments) > 1:
        doc.add(ENVIRONMENT_GROUP_NAME, entity("Environment", "Group", {
            "environments": [reference(name) for name in environments],
        }))
        doc.set_environment(ENVIRONMENT_GROUP_NAME)
    return doc
