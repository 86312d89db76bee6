import logging
from typing import NamedTuple

from pbrt import (INVALID_INDEX, Scene, FloatTex, Material, MatteMaterial, PlasticMaterial,
                  MetalMaterial, MirrorMaterial, GlassMaterial, SubstrateMaterial,
                  TranslucentMaterial, UberMaterial, DisneyMaterial, MixMaterial, NoneMaterial,
                  UnsupportedMaterial)
from .context import ConversionContext
from .document import SceneDocument, entity, constant_texture
from .errors import ConversionError
from .naming import reference, material_name
from .textures import texture_or_constant

logger = logging.getLogger(__name__)

# ========================================================================================

class Field(NamedTuple):
    """
    One row of a surface field table.

    Attributes:
        kind: how the source value is converted, one of "scalar", "texture", "roughness"
              and "material"
        source: the source attribute name, a (u, v) pair of names for "roughness"
        target: the target property name
    """

    kind: str
    source: str | tuple[str, str]
    target: str

def scalar(source: str, target: str) -> Field:
    return Field("scalar", source, target)

def texture(source: str, target: str) -> Field:
    return Field("texture", source, target)

def roughness(u: str, v: str, target: str = "roughness") -> Field:
    return Field("roughness", (u, v), target)

def material(source: str, target: str) -> Field:
    return Field("material", source, target)

# ----------------------------------------------------------------------------------------
# Field tables
# ----------------------------------------------------------------------------------------

MATTE_FIELDS = [
    texture("Kd", "Kd"),
    texture("sigma", "sigma"),
]

PLASTIC_FIELDS = [
    texture("Kd", "Kd"),
    texture("Ks", "Ks"),
    texture("roughness", "roughness"),
    scalar("remaproughness", "remap_roughness"),
]

METAL_FIELDS = [
    texture("eta", "eta"),
    texture("k", "k"),
    roughness("uroughness", "vroughness"),
    scalar("remaproughness", "remap_roughness"),
]

MIRROR_FIELDS = [
    texture("Kr", "Kr"),
]

GLASS_FIELDS = [
    texture("Kr", "Kr"),
    texture("Kt", "Kt"),
    texture("eta", "eta"),
    roughness("uroughness", "vroughness"),
    scalar("remaproughness", "remap_roughness"),
]

SUBSTRATE_FIELDS = [
    texture("Kd", "Kd"),
    texture("Ks", "Ks"),
    roughness("uroughness", "vroughness"),
    scalar("remaproughness", "remap_roughness"),
]

TRANSLUCENT_FIELDS = [
    texture("Kd", "Kd"),
    texture("Ks", "Ks"),
    texture("roughness", "roughness"),
    scalar("remaproughness", "remap_roughness"),
]

UBER_FIELDS = [
    texture("Kd", "Kd"),
    texture("eta", "eta"),
    texture("Ks", "metallic"),
    texture("uroughness", "roughness"),
    texture("opacity", "alpha"),
    texture("Kt", "specular_trans"),
]

DISNEY_FIELDS = [
    texture("color", "Kd"),
    texture("anisotropic", "anisotropic"),
    texture("clearcoat", "clearcoat"),
    texture("clearcoatgloss", "clearcoat_gloss"),
    texture("eta", "eta"),
    texture("metallic", "metallic"),
    texture("roughness", "roughness"),
    texture("sheen", "sheen"),
    texture("sheentint", "sheen_tint"),
    texture("spectrans", "specular_trans"),
    texture("speculartint", "specular_tint"),
    scalar("thin", "thin"),
    texture("difftrans", "diffuse_trans"),
    texture("flatness", "flatness"),
]

MIX_FIELDS = [
    material("namedmaterial1", "a"),
    material("namedmaterial2", "b"),
    texture("amount", "ratio"),
]

# ========================================================================================

def concat_roughness(scene: Scene, u: FloatTex, v: FloatTex) -> dict:
    """
    Combine two single-channel roughness fields into one two-channel texture.

    Args:
        scene: the source scene
        u: the roughness along the tangent
        v: the roughness along the bitangent

    Returns:
        node: a two-channel constant when both fields are constants, a concatenation node otherwise
    """

    if u.texture == INVALID_INDEX and v.texture == INVALID_INDEX:
        return constant_texture([float(u.value), float(v.value)])
    return entity("Texture", "Concat", {
        "textures": [texture_or_constant(scene, u), texture_or_constant(scene, v)],
    })

def _convert_field(scene: Scene, source: Material, field: Field):
    match field.kind:
        case "scalar":
            return getattr(source, field.source)
        case "texture":
            return texture_or_constant(scene, getattr(source, field.source))
        case "roughness":
            u, v = field.source
            return concat_roughness(scene, getattr(source, u), getattr(source, v))
        case "material":
            return reference(material_name(scene, getattr(source, field.source)))
        case _:
            raise ValueError(f"Unknown field kind '{field.kind}'")

def _surface_table(index: int, source: Material) -> tuple[str, list[Field]]:
    match source:
        case MatteMaterial():
            return "Matte", MATTE_FIELDS
        case PlasticMaterial():
            return "Plastic", PLASTIC_FIELDS
        case MetalMaterial():
            return "Metal", METAL_FIELDS
        case MirrorMaterial():
            return "Mirror", MIRROR_FIELDS
        case GlassMaterial():
            return "Glass", GLASS_FIELDS
        case SubstrateMaterial():
            return "Plastic", SUBSTRATE_FIELDS
        case TranslucentMaterial():
            return "Plastic", TRANSLUCENT_FIELDS
        case UberMaterial():
            return "Disney", UBER_FIELDS
        case DisneyMaterial():
            return "Disney", DISNEY_FIELDS
        case MixMaterial():
            return "Mix", MIX_FIELDS
        case NoneMaterial():
            logger.warning(f"Replaced material 'none' at index {index} with a default matte surface.")
            return "Matte", []
        case UnsupportedMaterial(kind=kind):
            logger.warning(f"Ignored unsupported material at index {index} with type '{kind}'.")
            return "Matte", []
        case _:
            raise ConversionError(f"Unknown material type '{type(source).__name__}' at index {index}.")

def convert_material(scene: Scene, index: int) -> dict:
    """
    Convert one material into a surface record.

    Args:
        scene: the source scene
        index: the material index

    Returns:
        record: the surface record
    """

    source = scene.materials[index]
    if source.bumpmap != INVALID_INDEX:
        logger.warning(f"Ignored unsupported material bump map at index {index}.")

    impl, fields = _surface_table(index, source)
    prop = {field.target: _convert_field(scene, source, field) for field in fields}
    return entity("Surface", impl, prop)

def convert_materials(ctx: ConversionContext, doc: SceneDocument) -> SceneDocument:
    for i in range(len(ctx.scene.materials)):
        doc.add(material_name(ctx.scene, i), convert_material(ctx.scene, i))
    return doc
