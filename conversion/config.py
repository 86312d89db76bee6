from dataclasses import dataclass, field

@dataclass
class ConversionConfig:
    """
    Configuration for converting a scene.

    Attributes:
        mesh_dir_name: the directory (beside the scene file) exported meshes are written to
        texture_dir_name: the directory (beside the scene file) copied images are written to
        triangulate_shapes: the shape kinds converted to triangle meshes before conversion
        sphere_subdivision: the subdivision level of tessellated spheres
        point_light_radius: the radius of the invisible spheres standing in for point lights
        sensor_height: the reference sensor height in millimeters used to derive focal lengths
        default_spp: the samples per pixel when the scene declares no sampler sample count
        default_output_file: the rendered image file name when the film declares none
        integrator_impl: the integrator implementation written to the render configuration
        integrator_depth: the maximum path depth when the scene declares none
        integrator_rr_depth: the path depth at which Russian roulette starts
        json_indent: the indentation of the written JSON documents
        log_to_file: whether to mirror the conversion log to a file beside the scene
    """

    mesh_dir_name: str = "lr_exported_meshes"
    texture_dir_name: str = "lr_exported_textures"
    triangulate_shapes: list[str] = field(default_factory=lambda: ["plymesh", "heightfield", "loopsubdiv"])
    sphere_subdivision: int = 4
    point_light_radius: float = 1e-3
    sensor_height: float = 24.0
    default_spp: int = 1024
    default_output_file: str = "render.exr"
    integrator_impl: str = "MegaPath"
    integrator_depth: int = 16
    integrator_rr_depth: int = 5
    json_indent: int = 4
    log_to_file: bool = False
