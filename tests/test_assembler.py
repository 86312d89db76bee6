import json
import pytest

from conversion import ConversionError, SceneDocument, assemble, write_scene
from conversion.document import entity

def test_document_refuses_duplicates_and_reserved_names(doc):
    doc.add("Shape:0:unnamed", entity("Shape", "Sphere"))
    with pytest.raises(ConversionError):
        doc.add("Shape:0:unnamed", entity("Shape", "Sphere"))
    for reserved in ("render", "renderable"):
        with pytest.raises(ConversionError):
            doc.add(reserved, entity("Shape", "Group"))

def test_derive_leaves_base_untouched(doc):
    doc.add("Surface:0:unnamed", entity("Surface", "Matte", {"Kd": [0.5, 0.5, 0.5]}))
    assert doc.derive("Surface:0:unnamed", "Copy", alpha="@Texture:0:unnamed") == "@Copy"
    assert doc.get("Surface:0:unnamed")["prop"] == {"Kd": [0.5, 0.5, 0.5]}
    assert doc.get("Copy")["prop"] == {"Kd": [0.5, 0.5, 0.5], "alpha": "@Texture:0:unnamed"}

def test_assemble_moves_visible_shapes_into_group(doc):
    doc.add("Shape:0:unnamed", entity("Shape", "Sphere"))
    doc.add_visible_shape("Shape:0:unnamed")
    library, entry = assemble(doc, "scene")

    assert library["renderable"] == {"type": "Shape", "impl": "Group", "prop": {"shapes": ["@Shape:0:unnamed"]}}
    assert entry["render"]["shapes"] == ["@renderable"]
    assert entry["render"]["integrator"]["impl"] == "MegaPath"
    assert entry["import"] == ["scene.exported.json"]
    assert "render" not in library
    assert doc.visible_shapes == ["@Shape:0:unnamed"]

def test_dangling_reference_is_fatal_before_writing(doc, tmp_path):
    doc.add("Shape:0:unnamed", entity("Shape", "Mesh", {"surface": "@Surface:9:missing"}))
    with pytest.raises(ConversionError, match="Surface:9:missing"):
        write_scene(doc, tmp_path, "scene")
    assert list(tmp_path.iterdir()) == []

def test_dangling_environment_reference_is_fatal(doc):
    doc.set_environment("Environment:0:unnamed")
    with pytest.raises(ConversionError):
        assemble(doc, "scene")

def test_write_scene(doc, tmp_path):
    doc.add("Shape:0:unnamed", entity("Shape", "Sphere"))
    doc.add_visible_shape("Shape:0:unnamed")
    library_file, entry_file = write_scene(doc, tmp_path, "scene", indent=4)

    assert library_file == tmp_path / "scene.exported.json"
    assert entry_file == tmp_path / "scene.json"
    assert json.loads(entry_file.read_text())["import"] == ["scene.exported.json"]
    assert "Shape:0:unnamed" in json.loads(library_file.read_text())
    assert '\n    "render"' in entry_file.read_text()
