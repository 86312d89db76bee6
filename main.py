import sys
import logging
import hydra
from omegaconf import DictConfig, OmegaConf

from pbrt import SceneLoadError, TriangulationError
from conversion import ConversionConfig, ConversionError, convert_scene_file

logger = logging.getLogger(__name__)

# ========================================================================================

@hydra.main(version_base=None, config_path="configs", config_name="config")
def main(cfg: DictConfig) -> None:

    if not cfg.scene_file:
        logger.error("No scene file given. Usage: python main.py scene_file=<path/to/scene.pbrt>")
        sys.exit(1)

    conversion_cfg = ConversionConfig(**OmegaConf.to_container(cfg.conversion, resolve=True))

    try:
        library_file, entry_file = convert_scene_file(cfg.scene_file, conversion_cfg)
    except SceneLoadError as e:
        logger.error(f"Failed to load scene file {cfg.scene_file}: {e}")
        sys.exit(1)
    except (TriangulationError, ConversionError) as e:
        logger.error(f"Failed to convert scene file {cfg.scene_file}: {e}")
        sys.exit(1)

    print(f"\nConverted scene written to:\n - {entry_file}\n - {library_file}\n")

if __name__ == "__main__":
    main()
