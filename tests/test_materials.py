import logging

from pbrt import (Scene, ColorTex, FloatTex, ConstantTexture, ImageMapTexture, ScaleTexture,
                  UnsupportedTexture, MatteMaterial, MetalMaterial, GlassMaterial, SubstrateMaterial,
                  UberMaterial, MixMaterial, NoneMaterial, UnsupportedMaterial)
from conversion.materials import convert_material, convert_materials, concat_roughness
from conversion.textures import convert_textures, texture_or_constant

def _constant(v) -> dict:
    return {"type": "Texture", "impl": "Constant", "prop": {"v": v}}

def test_matte_fields():
    scene = Scene(materials=[MatteMaterial(Kd=ColorTex((0.1, 0.2, 0.3)), sigma=FloatTex(20.0))])
    record = convert_material(scene, 0)
    assert record == {
        "type": "Surface",
        "impl": "Matte",
        "prop": {"Kd": _constant([0.1, 0.2, 0.3]), "sigma": _constant(20.0)},
    }

def test_texture_bound_field_is_a_reference():
    scene = Scene(textures=[ConstantTexture(name="albedo")],
                  materials=[MatteMaterial(Kd=ColorTex((0.5, 0.5, 0.5), 0))])
    assert convert_material(scene, 0)["prop"]["Kd"] == "@Texture:0:albedo"

def test_metal_is_converted_with_concatenated_roughness():
    scene = Scene(materials=[MetalMaterial(uroughness=FloatTex(0.1), vroughness=FloatTex(0.2))])
    record = convert_material(scene, 0)
    assert record["impl"] == "Metal"
    assert record["prop"]["roughness"] == _constant([0.1, 0.2])
    assert record["prop"]["remap_roughness"] is True
    assert set(record["prop"]) == {"eta", "k", "roughness", "remap_roughness"}

def test_concat_roughness_with_texture():
    scene = Scene(textures=[ConstantTexture(name="r", data_type="float")])
    node = concat_roughness(scene, FloatTex(0.0, 0), FloatTex(0.3))
    assert node["impl"] == "Concat"
    assert node["prop"]["textures"] == ["@Texture:0:r", _constant(0.3)]

def test_family_mapping():
    scene = Scene(materials=[GlassMaterial(), SubstrateMaterial(), UberMaterial()])
    assert [convert_material(scene, i)["impl"] for i in range(3)] == ["Glass", "Plastic", "Disney"]
    assert convert_material(scene, 2)["prop"]["alpha"] == _constant([1.0, 1.0, 1.0])

def test_mix_references_both_materials():
    scene = Scene(materials=[MatteMaterial(name="a"), MatteMaterial(name="b"),
                             MixMaterial(namedmaterial1=0, namedmaterial2=1)])
    prop = convert_material(scene, 2)["prop"]
    assert prop["a"] == "@Surface:0:a"
    assert prop["b"] == "@Surface:1:b"
    assert prop["ratio"] == _constant([0.5, 0.5, 0.5])

def test_unsupported_materials_fall_back_to_matte(caplog):
    scene = Scene(materials=[NoneMaterial(), UnsupportedMaterial(kind="hair")])
    with caplog.at_level(logging.WARNING):
        records = [convert_material(scene, i) for i in range(2)]
    assert records == [{"type": "Surface", "impl": "Matte", "prop": {}}] * 2
    assert len(caplog.records) == 2
    assert "'hair'" in caplog.records[1].getMessage()

def test_bump_map_is_ignored_with_diagnostic(caplog):
    scene = Scene(textures=[ConstantTexture(data_type="float")], materials=[MatteMaterial(bumpmap=0)])
    with caplog.at_level(logging.WARNING):
        record = convert_material(scene, 0)
    assert "bump" not in str(record)
    assert "bump map at index 0" in caplog.text

def test_materials_stage_names(make_context, doc):
    scene = Scene(materials=[MatteMaterial(), MatteMaterial(name="floor")])
    doc = convert_materials(make_context(scene), doc)
    assert list(doc.entities) == ["Surface:0:unnamed", "Surface:1:floor"]

# ----------------------------------------------------------------------------------------

def test_texture_or_constant():
    scene = Scene(textures=[ConstantTexture(name="t")])
    assert texture_or_constant(scene, ColorTex((1.0, 0.0, 0.0))) == _constant([1.0, 0.0, 0.0])
    assert texture_or_constant(scene, FloatTex(2.0)) == _constant(2.0)
    assert texture_or_constant(scene, FloatTex(2.0, 0)) == "@Texture:0:t"

def test_textures_stage(make_context, doc, tmp_path, caplog):
    (tmp_path / "wood.png").write_bytes(b"png")
    scene = Scene(textures=[
        ConstantTexture(name="gray", value=(0.5, 0.5, 0.5)),
        ConstantTexture(name="rough", data_type="float", value=(0.2, 0.2, 0.2)),
        ImageMapTexture(name="wood", filename="wood.png", uscale=2.0, vscale=3.0, gamma=True),
        ScaleTexture(name="tinted", tex1=ColorTex((1.0, 1.0, 1.0), 2), tex2=ColorTex((0.5, 0.5, 0.5))),
        UnsupportedTexture(name="checks", kind="checkerboard"),
        ImageMapTexture(name="sphere", filename="wood.png", mapping="spherical"),
    ])
    with caplog.at_level(logging.WARNING):
        doc = convert_textures(make_context(scene), doc)

    assert doc.get("Texture:0:gray") == _constant([0.5, 0.5, 0.5])
    assert doc.get("Texture:1:rough") == _constant(0.2)
    image = doc.get("Texture:2:wood")
    assert image["impl"] == "Image"
    assert image["prop"]["uv_scale"] == [2.0, 3.0]
    assert image["prop"]["uv_offset"] == [0.0, 0.0]
    assert image["prop"]["file"] == "lr_exported_textures/00002_wood.png"
    assert image["prop"]["encoding"] == "sRGB"
    assert (tmp_path / "lr_exported_textures" / "00002_wood.png").exists()
    assert doc.get("Texture:3:tinted")["prop"] == {"a": "@Texture:2:wood", "b": _constant([0.5, 0.5, 0.5])}
    assert doc.get("Texture:4:checks") == _constant([1.0, 1.0, 1.0])
    assert "uv_scale" not in doc.get("Texture:5:sphere")["prop"]
    assert len(caplog.records) == 2
