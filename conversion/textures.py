import logging

from pbrt import (INVALID_INDEX, Scene, ColorTex, FloatTex, ConstantTexture, ImageMapTexture,
                  ScaleTexture, UnsupportedTexture)
from .context import ConversionContext
from .document import SceneDocument, entity, constant_texture
from .errors import ConversionError
from .exporters import export_image
from .naming import reference, texture_name

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------------------------

def texture_or_constant(scene: Scene, tex: ColorTex | FloatTex) -> str | dict:
    """
    Convert a texture-or-constant field.

    Args:
        scene: the source scene
        tex: the field value

    Returns:
        value: a reference to the bound texture, or an inline constant texture node
    """

    if tex.texture != INVALID_INDEX:
        return reference(texture_name(scene, tex.texture))
    if isinstance(tex, ColorTex):
        return constant_texture([float(c) for c in tex.value])
    return constant_texture(float(tex.value))

def _constant_value(data_type: str, value) -> list[float] | float:
    if data_type == "float":
        return float(value[0])
    return [float(c) for c in value]

# ----------------------------------------------------------------------------------------

def convert_texture(ctx: ConversionContext, index: int) -> dict:
    texture = ctx.scene.textures[index]
    match texture:
        case ConstantTexture(value=value):
            return constant_texture(_constant_value(texture.data_type, value))
        case ImageMapTexture():
            prop = {}
            if texture.mapping == "uv":
                prop["uv_scale"] = [texture.uscale, texture.vscale]
                prop["uv_offset"] = [texture.udelta, texture.vdelta]
            else:
                logger.warning(f"Ignored unsupported texture mapping '{texture.mapping}' at index {index}.")
            prop["scale"] = texture.scale
            prop["file"] = export_image(texture.filename, ctx.base_dir, ctx.cfg.texture_dir_name, index)
            if texture.gamma:
                prop["encoding"] = "sRGB"
            return entity("Texture", "Image", prop)
        case ScaleTexture(tex1=tex1, tex2=tex2):
            return entity("Texture", "Multiply", {
                "a": texture_or_constant(ctx.scene, tex1),
                "b": texture_or_constant(ctx.scene, tex2),
            })
        case UnsupportedTexture(kind=kind):
            logger.warning(f"Ignored unsupported texture at index {index} with type '{kind}'.")
            return constant_texture(_constant_value(texture.data_type, (1.0, 1.0, 1.0)))
        case _:
            raise ConversionError(f"Unknown texture type '{type(texture).__name__}' at index {index}.")

def convert_textures(ctx: ConversionContext, doc: SceneDocument) -> SceneDocument:
    for i in range(len(ctx.scene.textures)):
        doc.add(texture_name(ctx.scene, i), convert_texture(ctx, i))
    return doc
