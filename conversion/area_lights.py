from .context import ConversionContext
from .document import SceneDocument, entity, constant_texture
from .naming import area_light_name

def convert_area_lights(ctx: ConversionContext, doc: SceneDocument) -> SceneDocument:
    for i, light in enumerate(ctx.scene.area_lights):
        emission = [float(s * l) for s, l in zip(light.scale, light.L)]
        doc.add(area_light_name(i), entity("Light", "Diffuse", {
            "emission": constant_texture(emission),
            "two_sided": light.twosided,
        }))
    return doc
