import json
import logging
import pytest

from pbrt import Scene, Sphere, InfiniteLight, Integrator, SceneLoadError, TriangulationError
from conversion import ConversionConfig, STAGES, convert_scene, convert_scene_file

def _read(path) -> dict:
    return json.loads(path.read_text())

def test_stage_order():
    assert [stage.__name__ for stage in STAGES] == [
        "convert_textures", "convert_materials", "convert_area_lights",
        "convert_shapes", "convert_lights", "convert_camera",
    ]

def test_identity_sphere_without_material(make_context):
    doc = convert_scene(make_context(Scene(shapes=[Sphere()])))

    shapes = [name for name, record in doc.entities.items() if record["type"] == "Shape"]
    assert shapes == ["Shape:0:unnamed"]
    record = doc.get("Shape:0:unnamed")
    assert record["impl"] == "Sphere"
    assert "transform" not in record["prop"]
    assert "surface" not in record["prop"]
    assert doc.visible_shapes == ["@Shape:0:unnamed"]

def test_integrator_settings(make_context, caplog):
    with caplog.at_level(logging.WARNING):
        doc = convert_scene(make_context(Scene(integrator=Integrator("bdpt", 8))))
    assert doc.render["integrator"] == {"impl": "MegaPath", "prop": {"depth": 8, "rr_depth": 5}}
    assert "'bdpt'" in caplog.text

# ----------------------------------------------------------------------------------------

SPHERE_SCENE = """
LookAt 0 0 5  0 0 0  0 1 0
Camera "perspective" "float fov" [45]
Film "image" "integer xresolution" [64] "integer yresolution" [48]
Sampler "halton" "integer pixelsamples" [16]
WorldBegin
Shape "sphere"
WorldEnd
"""

def test_scene_file_conversion(write_scene_file, tmp_path, cfg):
    library_file, entry_file = convert_scene_file(write_scene_file(SPHERE_SCENE), cfg)

    assert library_file == tmp_path.resolve() / "scene.exported.json"
    assert entry_file == tmp_path.resolve() / "scene.json"
    library = _read(library_file)
    entry = _read(entry_file)

    assert library["Shape:0:unnamed"] == {"type": "Shape", "impl": "Sphere", "prop": {"subdivision": 4}}
    assert library["renderable"]["prop"]["shapes"] == ["@Shape:0:unnamed"]
    assert entry["import"] == ["scene.exported.json"]
    assert entry["render"]["shapes"] == ["@renderable"]
    camera = entry["render"]["cameras"][0]
    assert camera["impl"] == "Pinhole"
    assert camera["prop"]["spp"] == 16
    assert camera["prop"]["film"]["prop"]["resolution"] == [64, 48]

def test_conversion_is_repeatable(write_scene_file, cfg):
    path = write_scene_file(SPHERE_SCENE)
    first = [p.read_text() for p in convert_scene_file(path, cfg)]
    second = [p.read_text() for p in convert_scene_file(path, cfg)]
    assert first == second

def test_environment_with_image_and_dark_environment(write_scene_file, tmp_path, cfg):
    (tmp_path / "sky.exr").write_bytes(b"exr")
    path = write_scene_file("""
WorldBegin
LightSource "infinite" "string mapname" "sky.exr"
LightSource "infinite" "rgb L" [0 0 0]
WorldEnd
""")
    library_file, entry_file = convert_scene_file(path, cfg)
    library = _read(library_file)

    environments = [name for name, record in library.items() if record["type"] == "Environment"]
    assert environments == ["Environment:0:unnamed"]
    assert library["Environment:0:unnamed"]["prop"]["emission"]["impl"] == "Image"
    assert _read(entry_file)["render"]["environment"] == "@Environment:0:unnamed"
    assert (tmp_path / "lr_exported_textures" / "env_00000_sky.exr").exists()

def test_heightfield_is_triangulated_before_conversion(write_scene_file, tmp_path, cfg):
    path = write_scene_file("""
WorldBegin
Shape "heightfield" "integer nu" [2] "integer nv" [2] "float Pz" [0 0 1 1]
WorldEnd
""")
    library = _read(convert_scene_file(path, cfg)[0])
    assert library["Shape:0:unnamed"]["impl"] == "Mesh"
    assert (tmp_path / "lr_exported_meshes" / "00000.obj").is_file()

def test_failed_triangulation_writes_nothing(write_scene_file, tmp_path, cfg):
    path = write_scene_file("""
WorldBegin
Shape "plymesh" "string filename" "missing.ply"
WorldEnd
""")
    with pytest.raises(TriangulationError):
        convert_scene_file(path, cfg)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["scene.pbrt"]

def test_missing_scene_file(tmp_path, cfg):
    with pytest.raises(SceneLoadError):
        convert_scene_file(tmp_path / "missing.pbrt", cfg)

def test_log_file(write_scene_file, tmp_path):
    path = write_scene_file("""
WorldBegin
Shape "nurbs"
WorldEnd
""")
    convert_scene_file(path, ConversionConfig(log_to_file=True))
    log = (tmp_path / "scene.convert.log").read_text()
    assert "Ignored unsupported shape at index 0 with type 'nurbs'" in log
