import pytest

from softraster.color import Color
from softraster.geometry import Vec2, Vec3
from softraster.materials import PhongMaterial
from softraster.model import MaterialFlags, MaterialMap, PhongMaterialProps
from softraster.projection import Projection
from softraster.raster import Triangle, draw_line, draw_triangle, plot_vertex
from softraster.scene import FrameBuffer, Scene

BLACK = Color(0.0, 0.0, 0.0, 1.0)
WHITE = Color(1.0, 1.0, 1.0, 1.0)


def _material(color=Color(1.0, 0.0, 0.0, 1.0), flags=MaterialFlags.NONE, emissive=None):
    props = PhongMaterialProps(diffuse=MaterialMap(color))
    if emissive is not None:
        props.emissive = MaterialMap(emissive)
    return PhongMaterial(props, "m", flags)


def _tri(material, z=1.0, cull=False, reverse=False):
    points = [(-1.0, -1.0), (1.0, -1.0), (-1.0, 1.0)] if reverse else [(-1.0, -1.0), (-1.0, 1.0), (1.0, -1.0)]
    projected = [
        Projection(world_pos=Vec3(x, y, z), screen_pos=Vec3(x, y, z), normal=Vec3(0.0, 0.0, 1.0))
        for x, y in points
    ]
    return Triangle(*projected, Vec2(0.0, 0.0), Vec2(0.0, 1.0), Vec2(1.0, 0.0), material, cull)


def _setup(**kwargs):
    scene = Scene(full_bright=True, **kwargs)
    target = FrameBuffer(8, 8)
    target.clear(BLACK, scene.far_clip)
    return scene, target


def test_triangle_fills_its_corner_and_writes_depth():
    scene, target = _setup()
    color = Color(1.0, 0.0, 0.0, 1.0)
    draw_triangle(target, _tri(_material(color)), scene)
    index = target.index(1, 1)
    assert target.colors[index] == color
    assert target.depth[index] == pytest.approx(1.0)
    assert target.colors[target.index(7, 7)] == BLACK
    assert target.depth[target.index(7, 7)] == scene.far_clip


def test_culled_back_face_is_skipped():
    scene, target = _setup()
    draw_triangle(target, _tri(_material(), cull=True, reverse=True), scene)
    assert all(c == BLACK for c in target.colors)


def test_culled_double_sided_is_drawn():
    scene, target = _setup()
    color = Color(0.0, 1.0, 0.0, 1.0)
    material = _material(color, MaterialFlags.DOUBLE_SIDED)
    draw_triangle(target, _tri(material, cull=True, reverse=True), scene)
    assert target.colors[target.index(1, 1)] == color


def test_culling_disabled_draws_back_face():
    scene, target = _setup(back_face_culling=False)
    color = Color(0.0, 0.0, 1.0, 1.0)
    draw_triangle(target, _tri(_material(color), cull=True, reverse=True), scene)
    assert target.colors[target.index(1, 1)] == color


def test_triangle_before_near_plane_is_skipped():
    scene, target = _setup()
    draw_triangle(target, _tri(_material(), z=scene.near_clip / 2), scene)
    assert all(c == BLACK for c in target.colors)


def test_triangle_off_screen_is_skipped():
    scene, target = _setup()
    tri = _tri(_material())
    for p in (tri.s1, tri.s2, tri.s3):
        p.screen_pos = Vec3(p.screen_pos.x + 5.0, p.screen_pos.y, p.screen_pos.z)
    draw_triangle(target, tri, scene)
    assert all(c == BLACK for c in target.colors)


def test_depth_test_keeps_nearer_triangle():
    scene, target = _setup()
    near_color = Color(1.0, 0.0, 0.0, 1.0)
    far_color = Color(0.0, 1.0, 0.0, 1.0)
    draw_triangle(target, _tri(_material(near_color), z=1.0), scene)
    draw_triangle(target, _tri(_material(far_color), z=2.0), scene)
    assert target.colors[target.index(1, 1)] == near_color


def test_alpha_cutout_draws_nothing():
    scene, target = _setup()
    draw_triangle(target, _tri(_material(Color(1.0, 1.0, 1.0, 0.4))), scene)
    assert all(c == BLACK for c in target.colors)
    assert all(d == scene.far_clip for d in target.depth)


def test_transparent_does_not_write_depth():
    scene, target = _setup()
    color = Color(0.5, 0.5, 0.5, 1.0)
    draw_triangle(target, _tri(_material(color, MaterialFlags.TRANSPARENT)), scene)
    index = target.index(1, 1)
    assert target.colors[index] == color
    assert target.depth[index] == scene.far_clip


def test_shaded_pixel_uses_material():
    scene, target = _setup()
    scene.full_bright = False
    scene.ambient_light = Color(0.0, 0.0, 0.0, 0.0)
    emissive = Color(0.2, 0.4, 0.6, 1.0)
    draw_triangle(target, _tri(_material(emissive=emissive)), scene)
    assert target.colors[target.index(1, 1)] == emissive


def test_wireframe_draws_edges():
    scene, target = _setup(wire_frame=True)
    target.clear(WHITE, scene.far_clip)
    draw_triangle(target, _tri(_material(Color(1.0, 1.0, 1.0, 0.0))), scene)
    assert target.colors[target.index(0, 0)] == BLACK
    assert target.colors[target.index(5, 5)] == WHITE


def test_draw_line_covers_endpoints_only_between():
    target = FrameBuffer(8, 8)
    target.clear(WHITE, 1.0)
    draw_line(target, Vec2(0.0, 2.0), Vec2(5.0, 2.0))
    row = [target.colors[target.index(x, 2)] for x in range(8)]
    assert row[:6] == [BLACK] * 6
    assert row[6:] == [WHITE, WHITE]
    assert target.colors[target.index(0, 3)] == WHITE


def test_draw_line_clips_to_frame():
    target = FrameBuffer(4, 4)
    target.clear(WHITE, 1.0)
    draw_line(target, Vec2(-3.0, -3.0), Vec2(10.0, 10.0))
    assert all(target.colors[target.index(i, i)] == BLACK for i in range(4))


def test_draw_line_rejects_infinite_endpoint():
    target = FrameBuffer(4, 4)
    with pytest.raises(ValueError):
        draw_line(target, Vec2(0.0, 0.0), Vec2(float("inf"), 1.0))


def test_plot_vertex_marks_square_with_clamped_depth():
    target = FrameBuffer(30, 30)
    target.clear(WHITE, 1.0)
    plot_vertex(target, Vec2(15.0, 15.0), 5.0)
    centre = target.colors[target.index(15, 15)]
    assert centre.r == 1.0
    assert centre.b == 1.0 - centre.r
    assert target.colors[target.index(25, 25)] == centre
    assert target.colors[target.index(26, 15)] == WHITE
    assert target.colors[target.index(4, 15)] == WHITE