import pytest

from pbrt import INVALID_INDEX, Scene, MatteMaterial, ConstantTexture
from conversion import ConversionError
from conversion.naming import (entity_name, reference, is_reference, dereference, material_name,
                               texture_name, alpha_surface_name)

def test_entity_name_uses_declared_name():
    assert entity_name("Surface", 3, "wood") == "Surface:3:wood"

@pytest.mark.parametrize("declared", [None, ""])
def test_entity_name_falls_back_to_unnamed(declared):
    assert entity_name("Texture", 0, declared) == "Texture:0:unnamed"

def test_entity_name_rejects_invalid_index():
    with pytest.raises(ConversionError):
        entity_name("Surface", INVALID_INDEX)

def test_reference_tokens():
    token = reference("Shape:1:unnamed")
    assert token == "@Shape:1:unnamed"
    assert is_reference(token)
    assert not is_reference("Shape:1:unnamed")
    assert not is_reference(1.0)
    assert dereference(token) == "Shape:1:unnamed"

def test_names_are_reconstructed_from_the_scene():
    scene = Scene(materials=[MatteMaterial(), MatteMaterial(name="floor")],
                  textures=[ConstantTexture(name="mask", data_type="float")])
    assert material_name(scene, 0) == "Surface:0:unnamed"
    assert material_name(scene, 1) == "Surface:1:floor"
    assert texture_name(scene, 0) == "Texture:0:mask"
    with pytest.raises(ConversionError):
        material_name(scene, INVALID_INDEX)

def test_alpha_surface_names():
    assert alpha_surface_name("Texture:0:mask") == "Alpha:Texture:0:mask"
    assert alpha_surface_name("Texture:0:mask", "Surface:1:floor") == "Surface:1:floor:Alpha:Texture:0:mask"
