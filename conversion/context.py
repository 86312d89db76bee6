import pathlib
from dataclasses import dataclass

from pbrt import Scene
from .config import ConversionConfig

@dataclass
class ConversionContext:
    """
    The read-only inputs shared by all conversion stages.

    Attributes:
        scene: the parsed source scene
        base_dir: the directory of the scene file, where all outputs are written
        cfg: the conversion configuration
    """

    scene: Scene
    base_dir: pathlib.Path
    cfg: ConversionConfig
