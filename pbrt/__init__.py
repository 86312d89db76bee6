from .model import *
from .errors import SceneLoadError, TriangulationError
from .loader import SceneLoader, load_scene
from .triangulate import shapes_to_triangle_mesh, TRIANGULATABLE_KINDS
