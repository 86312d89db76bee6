from .config import ConversionConfig
from .context import ConversionContext
from .errors import ConversionError
from .document import SceneDocument
from .assembler import assemble, write_scene
from .pipeline import STAGES, convert_scene, convert_scene_file
