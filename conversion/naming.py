from pbrt import INVALID_INDEX, Scene
from .errors import ConversionError

# Prefix marking a property value as a reference to another entity
REFERENCE_PREFIX = "@"

UNNAMED = "unnamed"

def entity_name(category: str, index: int, declared_name: str | None = None) -> str:
    """
    Derive the stable name of a converted entity.

    Args:
        category: the entity category, e.g. "Surface"
        index: the index of the source entity within its category
        declared_name: the name given in the scene file, if any

    Returns:
        name: the entity name, "<category>:<index>:<declared name or 'unnamed'>"
    """

    if index == INVALID_INDEX:
        raise ConversionError(f"Invalid {category} index.")
    return f"{category}:{index}:{declared_name or UNNAMED}"

def reference(name: str) -> str:
    return f"{REFERENCE_PREFIX}{name}"

def is_reference(value) -> bool:
    return isinstance(value, str) and value.startswith(REFERENCE_PREFIX)

def dereference(token: str) -> str:
    return token[len(REFERENCE_PREFIX):]

# ----------------------------------------------------------------------------------------

def material_name(scene: Scene, index: int) -> str:
    if index == INVALID_INDEX:
        raise ConversionError("Invalid material index.")
    return entity_name("Surface", index, scene.materials[index].name)

def texture_name(scene: Scene, index: int) -> str:
    if index == INVALID_INDEX:
        raise ConversionError("Invalid texture index.")
    return entity_name("Texture", index, scene.textures[index].name)

def object_name(scene: Scene, index: int) -> str:
    if index == INVALID_INDEX:
        raise ConversionError("Invalid object index.")
    return entity_name("Object", index, scene.objects[index].name)

def shape_name(index: int) -> str:
    return entity_name("Shape", index)

def instance_name(index: int) -> str:
    return entity_name("Instance", index)

def area_light_name(index: int) -> str:
    return entity_name("AreaLight", index)

def light_name(category: str, index: int) -> str:
    return entity_name(category, index)

def alpha_surface_name(alpha_texture_name: str, base_surface_name: str | None = None) -> str:
    """
    Name the surface derived from an alpha texture, optionally on top of a base surface.

    Args:
        alpha_texture_name: the name of the alpha texture entity
        base_surface_name: the name of the surface the alpha overrides, if any

    Returns:
        name: the derived surface name
    """

    if base_surface_name is None:
        return f"Alpha:{alpha_texture_name}"
    return f"{base_surface_name}:Alpha:{alpha_texture_name}"
