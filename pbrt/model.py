import numpy as np
from dataclasses import dataclass, field

# Sentinel for optional cross-references between source entities
INVALID_INDEX = -1

# ========================================================================================

def _identity() -> np.ndarray:
    return np.eye(4)

@dataclass
class Transform:
    """
    A possibly animated affine transform.

    Attributes:
        start: the 4x4 row-major matrix at the start of the shutter interval
        end: the 4x4 row-major matrix at the end of the shutter interval
    """

    start: np.ndarray = field(default_factory=_identity)
    end: np.ndarray = field(default_factory=_identity)

    @classmethod
    def from_matrix(cls, matrix) -> "Transform":
        m = np.asarray(matrix, dtype=float).reshape(4, 4)
        return cls(m.copy(), m.copy())

@dataclass
class ColorTex:
    value: tuple[float, float, float] = (0.0, 0.0, 0.0)
    texture: int = INVALID_INDEX

@dataclass
class FloatTex:
    value: float = 0.0
    texture: int = INVALID_INDEX

# ----------------------------------------------------------------------------------------
# Shapes
# ----------------------------------------------------------------------------------------

@dataclass(kw_only=True)
class Shape:
    """
    Common fields of all shapes.

    Attributes:
        shape_to_world: the shape's placement (relative to its object when inside one)
        material: the material index
        area_light: the area light index
        inside_medium: the interior medium index
        outside_medium: the exterior medium index
        reverse_orientation: whether normals are flipped
        object: the index of the owning object
        alpha: the float texture index overriding the material opacity
    """

    shape_to_world: Transform = field(default_factory=Transform)
    material: int = INVALID_INDEX
    area_light: int = INVALID_INDEX
    inside_medium: int = INVALID_INDEX
    outside_medium: int = INVALID_INDEX
    reverse_orientation: bool = False
    object: int = INVALID_INDEX
    alpha: int = INVALID_INDEX

@dataclass(kw_only=True)
class Sphere(Shape):
    radius: float = 1.0
    zmin: float | None = None
    zmax: float | None = None
    phimax: float = 360.0

@dataclass(kw_only=True)
class TriangleMesh(Shape):
    """
    An indexed triangle mesh. Per-vertex arrays are flat.

    Attributes:
        indices: vertex indices, three per triangle
        P: vertex positions, three floats per vertex
        N: optional vertex normals, three floats per vertex
        uv: optional texture coordinates, two floats per vertex
    """

    indices: np.ndarray | None = None
    P: np.ndarray = field(default_factory=lambda: np.zeros(0))
    N: np.ndarray | None = None
    uv: np.ndarray | None = None

    @property
    def num_vertices(self) -> int:
        return len(self.P) // 3

    @property
    def num_indices(self) -> int:
        return 0 if self.indices is None else len(self.indices)

@dataclass(kw_only=True)
class PLYMesh(Shape):
    filename: str = ""

@dataclass(kw_only=True)
class HeightField(Shape):
    nu: int = 0
    nv: int = 0
    Pz: np.ndarray = field(default_factory=lambda: np.zeros(0))

@dataclass(kw_only=True)
class LoopSubdiv(Shape):
    levels: int = 3
    indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    P: np.ndarray = field(default_factory=lambda: np.zeros(0))

@dataclass(kw_only=True)
class UnsupportedShape(Shape):
    kind: str = "unknown"

@dataclass
class Object:
    name: str | None = None
    first_shape: int = INVALID_INDEX
    num_shapes: int = 0
    object_to_instance: Transform = field(default_factory=Transform)

@dataclass
class Instance:
    object: int = INVALID_INDEX
    instance_to_world: Transform = field(default_factory=Transform)
    area_light: int = INVALID_INDEX
    inside_medium: int = INVALID_INDEX
    outside_medium: int = INVALID_INDEX
    reverse_orientation: bool = False

# ----------------------------------------------------------------------------------------
# Materials
# ----------------------------------------------------------------------------------------

@dataclass(kw_only=True)
class Material:
    name: str | None = None
    bumpmap: int = INVALID_INDEX

@dataclass(kw_only=True)
class MatteMaterial(Material):
    Kd: ColorTex = field(default_factory=lambda: ColorTex((0.5, 0.5, 0.5)))
    sigma: FloatTex = field(default_factory=lambda: FloatTex(0.0))

@dataclass(kw_only=True)
class PlasticMaterial(Material):
    Kd: ColorTex = field(default_factory=lambda: ColorTex((0.25, 0.25, 0.25)))
    Ks: ColorTex = field(default_factory=lambda: ColorTex((0.25, 0.25, 0.25)))
    roughness: FloatTex = field(default_factory=lambda: FloatTex(0.1))
    remaproughness: bool = True

@dataclass(kw_only=True)
class MetalMaterial(Material):
    eta: ColorTex = field(default_factory=lambda: ColorTex((0.2004376970, 0.9240334304, 1.1022119527)))
    k: ColorTex = field(default_factory=lambda: ColorTex((3.9129485033, 2.4528477015, 2.1421879552)))
    uroughness: FloatTex = field(default_factory=lambda: FloatTex(0.01))
    vroughness: FloatTex = field(default_factory=lambda: FloatTex(0.01))
    remaproughness: bool = True

@dataclass(kw_only=True)
class MirrorMaterial(Material):
    Kr: ColorTex = field(default_factory=lambda: ColorTex((0.9, 0.9, 0.9)))

@dataclass(kw_only=True)
class GlassMaterial(Material):
    Kr: ColorTex = field(default_factory=lambda: ColorTex((1.0, 1.0, 1.0)))
    Kt: ColorTex = field(default_factory=lambda: ColorTex((1.0, 1.0, 1.0)))
    eta: FloatTex = field(default_factory=lambda: FloatTex(1.5))
    uroughness: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    vroughness: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    remaproughness: bool = True

@dataclass(kw_only=True)
class SubstrateMaterial(Material):
    Kd: ColorTex = field(default_factory=lambda: ColorTex((0.5, 0.5, 0.5)))
    Ks: ColorTex = field(default_factory=lambda: ColorTex((0.5, 0.5, 0.5)))
    uroughness: FloatTex = field(default_factory=lambda: FloatTex(0.1))
    vroughness: FloatTex = field(default_factory=lambda: FloatTex(0.1))
    remaproughness: bool = True

@dataclass(kw_only=True)
class TranslucentMaterial(Material):
    Kd: ColorTex = field(default_factory=lambda: ColorTex((0.25, 0.25, 0.25)))
    Ks: ColorTex = field(default_factory=lambda: ColorTex((0.25, 0.25, 0.25)))
    reflect: ColorTex = field(default_factory=lambda: ColorTex((0.5, 0.5, 0.5)))
    transmit: ColorTex = field(default_factory=lambda: ColorTex((0.5, 0.5, 0.5)))
    roughness: FloatTex = field(default_factory=lambda: FloatTex(0.1))
    remaproughness: bool = True

@dataclass(kw_only=True)
class UberMaterial(Material):
    Kd: ColorTex = field(default_factory=lambda: ColorTex((0.25, 0.25, 0.25)))
    Ks: ColorTex = field(default_factory=lambda: ColorTex((0.25, 0.25, 0.25)))
    Kr: ColorTex = field(default_factory=lambda: ColorTex((0.0, 0.0, 0.0)))
    Kt: ColorTex = field(default_factory=lambda: ColorTex((0.0, 0.0, 0.0)))
    eta: FloatTex = field(default_factory=lambda: FloatTex(1.5))
    opacity: ColorTex = field(default_factory=lambda: ColorTex((1.0, 1.0, 1.0)))
    uroughness: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    vroughness: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    remaproughness: bool = True

@dataclass(kw_only=True)
class DisneyMaterial(Material):
    color: ColorTex = field(default_factory=lambda: ColorTex((0.5, 0.5, 0.5)))
    anisotropic: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    clearcoat: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    clearcoatgloss: FloatTex = field(default_factory=lambda: FloatTex(1.0))
    eta: FloatTex = field(default_factory=lambda: FloatTex(1.5))
    metallic: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    roughness: FloatTex = field(default_factory=lambda: FloatTex(0.5))
    sheen: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    sheentint: FloatTex = field(default_factory=lambda: FloatTex(0.5))
    spectrans: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    speculartint: FloatTex = field(default_factory=lambda: FloatTex(0.0))
    thin: bool = False
    difftrans: ColorTex = field(default_factory=lambda: ColorTex((1.0, 1.0, 1.0)))
    flatness: ColorTex = field(default_factory=lambda: ColorTex((0.0, 0.0, 0.0)))

@dataclass(kw_only=True)
class MixMaterial(Material):
    namedmaterial1: int = INVALID_INDEX
    namedmaterial2: int = INVALID_INDEX
    amount: ColorTex = field(default_factory=lambda: ColorTex((0.5, 0.5, 0.5)))

@dataclass(kw_only=True)
class NoneMaterial(Material):
    pass

@dataclass(kw_only=True)
class UnsupportedMaterial(Material):
    kind: str = "unknown"

# ----------------------------------------------------------------------------------------
# Textures
# ----------------------------------------------------------------------------------------

@dataclass(kw_only=True)
class Texture:
    name: str | None = None
    data_type: str = "spectrum"

@dataclass(kw_only=True)
class ConstantTexture(Texture):
    value: tuple[float, float, float] = (1.0, 1.0, 1.0)

@dataclass(kw_only=True)
class ImageMapTexture(Texture):
    filename: str | None = None
    mapping: str = "uv"
    uscale: float = 1.0
    vscale: float = 1.0
    udelta: float = 0.0
    vdelta: float = 0.0
    scale: float = 1.0
    gamma: bool = False

@dataclass(kw_only=True)
class ScaleTexture(Texture):
    tex1: ColorTex = field(default_factory=lambda: ColorTex((1.0, 1.0, 1.0)))
    tex2: ColorTex = field(default_factory=lambda: ColorTex((1.0, 1.0, 1.0)))

@dataclass(kw_only=True)
class UnsupportedTexture(Texture):
    kind: str = "unknown"

# ----------------------------------------------------------------------------------------
# Lights
# ----------------------------------------------------------------------------------------

@dataclass
class DiffuseAreaLight:
    scale: tuple[float, float, float] = (1.0, 1.0, 1.0)
    L: tuple[float, float, float] = (1.0, 1.0, 1.0)
    twosided: bool = False
    samples: int = 1

@dataclass(kw_only=True)
class Light:
    scale: tuple[float, float, float] = (1.0, 1.0, 1.0)
    light_to_world: Transform = field(default_factory=Transform)

@dataclass(kw_only=True)
class PointLight(Light):
    I: tuple[float, float, float] = (1.0, 1.0, 1.0)
    from_: tuple[float, float, float] = (0.0, 0.0, 0.0)

@dataclass(kw_only=True)
class DistantLight(Light):
    L: tuple[float, float, float] = (1.0, 1.0, 1.0)
    from_: tuple[float, float, float] = (0.0, 0.0, 0.0)
    to: tuple[float, float, float] = (0.0, 0.0, 1.0)

@dataclass(kw_only=True)
class InfiniteLight(Light):
    L: tuple[float, float, float] = (1.0, 1.0, 1.0)
    mapname: str | None = None
    samples: int = 1

@dataclass(kw_only=True)
class UnsupportedLight(Light):
    kind: str = "unknown"

# ----------------------------------------------------------------------------------------
# Camera, film, filter, sampler, integrator
# ----------------------------------------------------------------------------------------

@dataclass(kw_only=True)
class Camera:
    camera_to_world: Transform = field(default_factory=Transform)

@dataclass(kw_only=True)
class PerspectiveCamera(Camera):
    fov: float = 90.0
    lensradius: float = 0.0
    focaldistance: float = 1e6
    frameaspectratio: float | None = None
    screenwindow: tuple[float, float, float, float] | None = None

@dataclass(kw_only=True)
class UnsupportedCamera(Camera):
    kind: str = "unknown"

@dataclass
class ImageFilm:
    xresolution: int = 640
    yresolution: int = 480
    cropwindow: tuple[float, float, float, float] = (0.0, 1.0, 0.0, 1.0)
    scale: float = 1.0
    maxsampleluminance: float = float("inf")
    diagonal: float = 35.0
    filename: str | None = None

@dataclass
class Filter:
    kind: str = "box"
    xwidth: float = 0.5
    ywidth: float = 0.5

@dataclass
class Sampler:
    kind: str = "halton"
    pixelsamples: int | None = None

@dataclass
class Integrator:
    kind: str = "path"
    maxdepth: int | None = None

# ========================================================================================

@dataclass
class Scene:
    """
    A fully parsed scene.

    Attributes:
        camera: the scene camera
        film: the image film
        filter: the reconstruction filter
        sampler: the pixel sampler
        integrator: the light transport integrator
        shapes: all shapes, grouped shapes stored contiguously per object
        objects: named groups of shapes
        instances: placements of objects
        materials: all materials
        textures: all float and spectrum textures
        area_lights: area lights attached to shapes and instances
        lights: point, distant and infinite lights
        mediums: names of declared participating media
        start_time: the shutter open time
        end_time: the shutter close time
    """

    camera: Camera = field(default_factory=PerspectiveCamera)
    film: ImageFilm = field(default_factory=ImageFilm)
    filter: Filter = field(default_factory=Filter)
    sampler: Sampler = field(default_factory=Sampler)
    integrator: Integrator = field(default_factory=Integrator)
    shapes: list[Shape] = field(default_factory=list)
    objects: list[Object] = field(default_factory=list)
    instances: list[Instance] = field(default_factory=list)
    materials: list[Material] = field(default_factory=list)
    textures: list[Texture] = field(default_factory=list)
    area_lights: list[DiffuseAreaLight] = field(default_factory=list)
    lights: list[Light] = field(default_factory=list)
    mediums: list[str] = field(default_factory=list)
    start_time: float = 0.0
    end_time: float = 1.0
