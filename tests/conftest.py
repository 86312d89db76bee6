import pathlib
import pytest

from pbrt import Scene
from conversion import ConversionConfig, ConversionContext, SceneDocument

@pytest.fixture
def cfg() -> ConversionConfig:
    return ConversionConfig()

@pytest.fixture
def make_context(tmp_path: pathlib.Path, cfg: ConversionConfig):
    def _make(scene: Scene) -> ConversionContext:
        return ConversionContext(scene, tmp_path, cfg)
    return _make

@pytest.fixture
def doc() -> SceneDocument:
    return SceneDocument({"impl": "MegaPath", "prop": {"depth": 16, "rr_depth": 5}})

@pytest.fixture
def write_scene_file(tmp_path: pathlib.Path):
    def _write(text: str, name: str = "scene.pbrt") -> pathlib.Path:
        path = tmp_path / name
        path.write_text(text)
        return path
    return _write
