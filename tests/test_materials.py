import math

import pytest
from PIL import Image

from softraster.color import Color
from softraster.geometry import Vec2, Vec3
from softraster.materials import EarthMaterial, PhongMaterial, reflect
from softraster.model import (
    Fragment,
    Light,
    MaterialFlags,
    MaterialMap,
    PhongMaterialProps,
)
from softraster.scene import Scene
from softraster.textures import load_color_texture, load_float_texture, load_vector_texture


def _scene(**kwargs):
    return Scene(ambient_light=Color(0.0, 0.0, 0.0, 0.0), **kwargs)


def _fragment(base=Color(0.5, 0.25, 1.0, 1.0), world=Vec3(0.0, 0.0, 1.0)):
    return Fragment(
        world_pos=world,
        normal=Vec3(0.0, 0.0, 1.0),
        uv=Vec2(0.5, 0.5),
        base_color=base,
    )


def _float_texture(alpha):
    return load_float_texture(Image.new("RGBA", (2, 2), (0, 0, 0, alpha)))


def test_reflect_twice_is_identity():
    v = Vec3(0.3, -0.7, 0.2)
    n = Vec3(0.0, 1.0, 0.0)
    back = reflect(reflect(v, n), n)
    assert back.x == pytest.approx(v.x)
    assert back.y == pytest.approx(v.y)
    assert back.z == pytest.approx(v.z)


def test_reflect_keeps_length_and_flips_normal_component():
    v = Vec3(1.0, -2.0, 0.5)
    n = Vec3(0.0, 1.0, 0.0)
    r = reflect(v, n)
    assert r.length() == pytest.approx(v.length())
    assert r.dot(n) == pytest.approx(-v.dot(n))


def test_needs_tbn_follows_normal_map():
    flat = PhongMaterial(PhongMaterialProps(), "flat")
    texture = load_vector_texture(Image.new("RGBA", (2, 2), (128, 128, 255, 255)))
    bumpy = PhongMaterial(PhongMaterialProps(normal_map=texture), "bumpy")
    assert flat.needs_tbn is False
    assert bumpy.needs_tbn is True


def test_base_color_without_texture_is_diffuse_color():
    diffuse = Color(0.2, 0.4, 0.6, 1.0)
    mat = PhongMaterial(PhongMaterialProps(diffuse=MaterialMap(diffuse)), "m")
    assert mat.base_color(Vec2(0.3, 0.3), Vec2(), Vec2(), _scene()) == diffuse


def test_base_color_with_texture_modulates_color():
    texture = load_color_texture(Image.new("RGBA", (2, 2), (255, 0, 0, 255)))
    mat = PhongMaterial(
        PhongMaterialProps(diffuse=MaterialMap(Color(1.0, 1.0, 1.0, 1.0), texture)), "m"
    )
    result = mat.base_color(Vec2(0.5, 0.5), Vec2(), Vec2(), _scene())
    assert result == Color.from_rgba8(255, 0, 0, 255)


def test_unlit_shading_is_emissive():
    emissive = Color(0.2, 0.4, 0.6, 1.0)
    mat = PhongMaterial(PhongMaterialProps(emissive=MaterialMap(emissive)), "m")
    assert mat.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), _scene()) == emissive


def test_light_along_normal_gives_base_color():
    mat = PhongMaterial(PhongMaterialProps(), "m")
    scene = _scene(lights=[Light(direction=Vec3(0.0, 0.0, 1.0), color=Color(1.0, 1.0, 1.0, 1.0))])
    base = Color(0.5, 0.25, 1.0, 1.0)
    assert mat.shade(_fragment(base), Color(0.0, 0.0, 0.0, 1.0), scene) == base


def test_light_from_behind_leaves_opaque_surface_dark():
    mat = PhongMaterial(PhongMaterialProps(), "m")
    scene = _scene(lights=[Light(direction=Vec3(0.0, 0.0, -1.0), color=Color(1.0, 1.0, 1.0, 1.0))])
    result = mat.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), scene)
    assert result.luminance() == 0.0


def test_point_light_follows_inverse_square():
    mat = PhongMaterial(PhongMaterialProps(), "m")
    world = Vec3(0.0, 0.0, 1.0)

    def lit(distance):
        light = Light(
            direction=world + Vec3(0.0, 0.0, distance),
            color=Color(1.0, 1.0, 1.0, 1.0),
            is_point_light=True,
        )
        return mat.shade(_fragment(world=world), Color(0.0, 0.0, 0.0, 1.0), _scene(lights=[light]))

    near, far = lit(1.0), lit(2.0)
    assert near.r == pytest.approx(4 * far.r)
    assert near.g == pytest.approx(4 * far.g)


def test_double_sided_back_face_flips_normal():
    mat = PhongMaterial(PhongMaterialProps(), "m", MaterialFlags.DOUBLE_SIDED)
    fragment = _fragment()
    fragment.is_back_face = True
    original = fragment.normal
    mat.shade(fragment, Color(0.0, 0.0, 0.0, 1.0), _scene())
    assert fragment.normal == -original


def test_subsurface_scattering_lights_back_of_double_sided():
    tint = Color(1.0, 1.0, 1.0, 1.0)
    light = Light(direction=Vec3(0.0, 0.0, -1.0), color=Color(1.0, 1.0, 1.0, 1.0))
    single = PhongMaterial(PhongMaterialProps(tint=MaterialMap(tint)), "s")
    double = PhongMaterial(PhongMaterialProps(tint=MaterialMap(tint)), "d", MaterialFlags.DOUBLE_SIDED)
    dark = single.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), _scene(lights=[light]))
    glow = double.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), _scene(lights=[light]))
    assert glow.luminance() > dark.luminance()


def test_transparent_filters_previous_colour():
    tint = Color(0.5, 0.5, 0.5, 1.0)
    mat = PhongMaterial(PhongMaterialProps(tint=MaterialMap(tint)), "glass", MaterialFlags.TRANSPARENT)
    previous = Color(0.8, 0.6, 0.4, 1.0)
    result = mat.shade(_fragment(), previous, _scene())
    assert result == previous * tint


def test_specular_adds_highlight():
    light = Light(direction=Vec3(0.0, 0.0, 1.0), color=Color(1.0, 1.0, 1.0, 1.0))
    matte = PhongMaterial(PhongMaterialProps(), "matte")
    shiny = PhongMaterial(
        PhongMaterialProps(specular=MaterialMap(Color(1.0, 1.0, 1.0, 0.1))), "shiny"
    )
    a = matte.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), _scene(lights=[light]))
    b = shiny.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), _scene(lights=[light]))
    assert b.luminance() > a.luminance()


def test_zero_white_point_tracks_maximum_colour():
    emissive = Color(2.0, 2.0, 2.0, 1.0)
    mat = PhongMaterial(PhongMaterialProps(emissive=MaterialMap(emissive)), "m")
    scene = _scene(white_point=0.0)
    result = mat.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), scene)
    assert scene.maximum_color == pytest.approx(result.luminance())


def test_nonzero_white_point_leaves_maximum_colour():
    mat = PhongMaterial(PhongMaterialProps(emissive=MaterialMap(Color(2.0, 2.0, 2.0, 1.0))), "m")
    scene = _scene(white_point=1.0)
    mat.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), scene)
    assert scene.maximum_color == 0.0


def _earth(ocean_alpha, cloud_alpha):
    earth = EarthMaterial("earth")
    earth.terrain_mat.props.emissive.color = Color(0.1, 0.2, 0.3, 1.0)
    earth.ocean_mat.props.emissive.color = Color(0.0, 0.1, 0.9, 1.0)
    earth.cloud_mat.props.emissive.color = Color(0.7, 0.7, 0.7, 1.0)
    earth.ocean_mask = _float_texture(ocean_alpha)
    earth.cloud_texture = _float_texture(cloud_alpha)
    return earth


def test_earth_ocean_without_clouds():
    earth = _earth(255, 0)
    result = earth.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), _scene())
    assert result == earth.ocean_mat.props.emissive.color


def test_earth_terrain_without_clouds():
    earth = _earth(0, 0)
    result = earth.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), _scene())
    assert result == earth.terrain_mat.props.emissive.color


def test_earth_full_clouds_hide_ground():
    earth = _earth(255, 255)
    result = earth.shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), _scene())
    assert result == earth.cloud_mat.props.emissive.color


def test_earth_without_masks_raises():
    with pytest.raises(ValueError):
        EarthMaterial("bare").shade(_fragment(), Color(0.0, 0.0, 0.0, 1.0), _scene())


def test_earth_base_color_requires_terrain_texture():
    earth = EarthMaterial("bare")
    with pytest.raises(ValueError):
        earth.base_color(Vec2(), Vec2(), Vec2(), _scene())
    earth.terrain_mat.props.diffuse.texture = load_color_texture(
        Image.new("RGBA", (2, 2), (0, 255, 0, 255))
    )
    result = earth.base_color(Vec2(0.5, 0.5), Vec2(), Vec2(), _scene())
    assert result == Color.from_rgba8(0, 255, 0, 255)
    assert earth.needs_tbn is True
    assert not math.isnan(result.g)