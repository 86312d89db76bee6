import logging

from pbrt import INVALID_INDEX, Shape, Sphere, TriangleMesh, Instance
from .context import ConversionContext
from .document import SceneDocument, entity
from .exporters import export_mesh
from .naming import (reference, material_name, texture_name, object_name, shape_name,
                     instance_name, area_light_name, alpha_surface_name)
from .transforms import to_matrix_node, stack_nodes

logger = logging.getLogger(__name__)

# ========================================================================================

def _warn_unsupported_placement(category: str, index: int, placement: Shape | Instance) -> None:
    if placement.inside_medium != INVALID_INDEX or placement.outside_medium != INVALID_INDEX:
        logger.warning(f"Ignored unsupported {category} inside medium at index {index}.")
    if placement.reverse_orientation:
        logger.warning(f"Ignored unsupported {category} reverse orientation at index {index}.")

def _is_partial_sphere(sphere: Sphere) -> bool:
    return (sphere.phimax < 360.0
            or (sphere.zmin is not None and sphere.zmin > -sphere.radius)
            or (sphere.zmax is not None and sphere.zmax < sphere.radius))

def alpha_surface(ctx: ConversionContext, doc: SceneDocument, shape: Shape) -> str:
    """
    Get the surface overriding the opacity of a shape's material with the shape's alpha
    texture, creating it on first use.

    Shapes sharing the same material and alpha texture share one derived surface.

    Args:
        ctx: the conversion context
        doc: the document, the derived surface is added to it if missing
        shape: a shape with an alpha texture

    Returns:
        name: the name of the derived surface
    """

    alpha_texture = texture_name(ctx.scene, shape.alpha)
    if shape.material == INVALID_INDEX:
        name = alpha_surface_name(alpha_texture)
        if name not in doc:
            doc.add(name, entity("Surface", "Matte", {"alpha": reference(alpha_texture)}))
    else:
        base_surface = material_name(ctx.scene, shape.material)
        name = alpha_surface_name(alpha_texture, base_surface)
        if name not in doc:
            doc.derive(base_surface, name, alpha=reference(alpha_texture))
    return name

def convert_shape(ctx: ConversionContext, doc: SceneDocument, index: int) -> dict | None:
    """
    Convert one shape.

    Args:
        ctx: the conversion context
        doc: the document, derived surfaces are added to it
        index: the shape index

    Returns:
        record: the shape record, or None if the shape kind is not supported
    """

    shape = ctx.scene.shapes[index]
    _warn_unsupported_placement("shape", index, shape)

    prop = {}
    placement = to_matrix_node(shape.shape_to_world)
    match shape:
        case Sphere(radius=radius):
            if _is_partial_sphere(shape):
                logger.warning(f"Ignored unsupported partial sphere parameters at index {index}.")
            impl = "Sphere"
            prop["subdivision"] = ctx.cfg.sphere_subdivision
            scale = None if radius == 1.0 else {"impl": "SRT", "prop": {"scale": float(radius)}}
            placement = stack_nodes(scale, placement)
        case TriangleMesh():
            logger.info(f"Converting triangle mesh at index {index} to Wavefront OBJ.")
            mesh_dir = ctx.base_dir / ctx.cfg.mesh_dir_name
            mesh_dir.mkdir(parents=True, exist_ok=True)
            export_mesh(mesh_dir / f"{index:05}.obj", shape)
            impl = "Mesh"
            prop["file"] = f"{ctx.cfg.mesh_dir_name}/{index:05}.obj"
        case _:
            kind = getattr(shape, "kind", type(shape).__name__)
            logger.warning(f"Ignored unsupported shape at index {index} with type '{kind}'.")
            return None

    if placement is not None:
        prop["transform"] = placement
    if shape.alpha != INVALID_INDEX:
        prop["surface"] = reference(alpha_surface(ctx, doc, shape))
    elif shape.material != INVALID_INDEX:
        prop["surface"] = reference(material_name(ctx.scene, shape.material))
    if shape.area_light != INVALID_INDEX:
        prop["light"] = reference(area_light_name(shape.area_light))
    return entity("Shape", impl, prop)

# ----------------------------------------------------------------------------------------

def _convert_objects(ctx: ConversionContext, doc: SceneDocument, converted_shapes: set[int]) -> set[int]:
    converted_objects = set()
    for i, obj in enumerate(ctx.scene.objects):
        if obj.first_shape == INVALID_INDEX or obj.num_shapes == 0:
            logger.warning(f"Ignored empty object at index {i}.")
            continue
        members = range(obj.first_shape, obj.first_shape + obj.num_shapes)
        shapes = [reference(shape_name(s)) for s in members if s in converted_shapes]
        if not shapes:
            logger.warning(f"Ignored object at index {i} without any converted shapes.")
            continue

        prop = {}
        if (t := to_matrix_node(obj.object_to_instance)) is not None:
            prop["transform"] = t
        prop["shapes"] = shapes
        doc.add(object_name(ctx.scene, i), entity("Shape", "Group", prop))
        converted_objects.add(i)
    return converted_objects

def _convert_instances(ctx: ConversionContext, doc: SceneDocument, converted_objects: set[int]) -> None:
    for i, instance in enumerate(ctx.scene.instances):
        if instance.object == INVALID_INDEX or instance.object not in converted_objects:
            logger.warning(f"Ignored instance at index {i} with invalid or empty object.")
            continue
        _warn_unsupported_placement("instance", i, instance)

        prop = {}
        if (t := to_matrix_node(instance.instance_to_world)) is not None:
            prop["transform"] = t
        if instance.area_light != INVALID_INDEX:
            prop["light"] = reference(area_light_name(instance.area_light))
        prop["shape"] = reference(object_name(ctx.scene, instance.object))

        name = instance_name(i)
        doc.add(name, entity("Shape", "Instance", prop))
        doc.add_visible_shape(name)

def convert_shapes(ctx: ConversionContext, doc: SceneDocument) -> SceneDocument:
    """
    Convert shapes, objects and instances. Shapes owned by an object are only made visible
    through the instances of that object.
    """

    converted_shapes = set()
    for i, shape in enumerate(ctx.scene.shapes):
        record = convert_shape(ctx, doc, i)
        if record is None:
            continue
        name = shape_name(i)
        doc.add(name, record)
        converted_shapes.add(i)
        if shape.object == INVALID_INDEX:
            doc.add_visible_shape(name)

    converted_objects = _convert_objects(ctx, doc, converted_shapes)
    _convert_instances(ctx, doc, converted_objects)
    return doc
