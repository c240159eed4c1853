"""Triangle rasterization into a frame buffer, with wireframe and debug markers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .color import Color
from .geometry import Vec2, Vec3, _ieee_div
from .model import Fragment, Material, MaterialFlags
from .projection import Projection

_LINE_COLOR = Color(0.0, 0.0, 0.0, 1.0)
_MARKER_RADIUS = 10


@dataclass
class Triangle:
    """A projected triangle ready for rasterization."""

    s1: Projection
    s2: Projection
    s3: Projection
    uv1: Vec2
    uv2: Vec2
    uv3: Vec2
    material: Material
    cull: bool = False


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def plot_vertex(target: Any, pos: Vec2, depth: float) -> None:
    """Draw a square marker coloured from blue (near) to red (far)."""
    depth = max(0.0, min(1.0, depth))
    heat = Color(depth, 0.0, 1.0 - depth, 1.0)
    cx, cy = int(pos.x), int(pos.y)
    for dx in range(-_MARKER_RADIUS, _MARKER_RADIUS + 1):
        for dy in range(-_MARKER_RADIUS, _MARKER_RADIUS + 1):
            x, y = cx + dx, cy + dy
            if 0 <= x < target.width and 0 <= y < target.height:
                target.colors[target.index(x, y)] = heat


def draw_line(target: Any, start: Vec2, end: Vec2) -> None:
    """Draw a black Bresenham line, clipped to the frame."""
    if not all(math.isfinite(v) for v in (*start, *end)):
        raise ValueError("line endpoints must be finite")
    x0, y0 = _round_half_away(start.x), _round_half_away(start.y)
    x1, y1 = _round_half_away(end.x), _round_half_away(end.y)

    dx, dy = abs(x1 - x0), abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy

    while True:
        if 0 <= x0 < target.width and 0 <= y0 < target.height:
            target.colors[target.index(x0, y0)] = _LINE_COLOR
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x0 += sx
        if e2 < dx:
            err += dx
            y0 += sy


def _first_quad(start: int) -> int:
    """Skip whole 2x2 quads that lie entirely left of (or above) the frame."""
    if start < -1:
        start += ((-start) // 2) * 2
    return start


def _tangent_frame(tri: Triangle) -> tuple[Vec3, Vec3]:
    edge1 = tri.s2.world_pos - tri.s1.world_pos
    edge2 = tri.s3.world_pos - tri.s1.world_pos
    duv1 = tri.uv2 - tri.uv1
    duv2 = tri.uv3 - tri.uv1
    f = _ieee_div(1.0, duv1.x * duv2.y - duv2.x * duv1.y)
    tangent = Vec3(
        f * (duv2.y * edge1.x - duv1.y * edge2.x),
        f * (duv2.y * edge1.y - duv1.y * edge2.y),
        f * (duv2.y * edge1.z - duv1.y * edge2.z),
    ).normalized()
    bitangent = Vec3(
        f * (-duv2.x * edge1.x + duv1.x * edge2.x),
        f * (-duv2.x * edge1.y + duv1.x * edge2.y),
        f * (-duv2.x * edge1.z + duv1.x * edge2.z),
    ).normalized()
    return tangent, bitangent


def draw_triangle(target: Any, tri: Triangle, scene: Any) -> None:
    """Rasterize ``tri`` into ``target``, depth testing and shading each pixel."""
    material = tri.material
    flags = material.flags
    if (
        tri.cull
        and scene.back_face_culling
        and not flags & (MaterialFlags.TRANSPARENT | MaterialFlags.DOUBLE_SIDED)
    ):
        return

    screen = (tri.s1.screen_pos, tri.s2.screen_pos, tri.s3.screen_pos)
    if (
        all(p.x < -1 for p in screen)
        or all(p.x > 1 for p in screen)
        or all(p.y < -1 for p in screen)
        or all(p.y > 1 for p in screen)
        or all(p.z < scene.near_clip for p in screen)
        or all(p.z > scene.far_clip for p in screen)
    ):
        return

    width, height = target.size
    half = Vec2(width / 2.0, height / 2.0)
    a, b, c = ((Vec2(p.x, p.y) + Vec2(1.0, 1.0)).component_mul(half) for p in screen)
    if not all(math.isfinite(v) for v in (*a, *b, *c)):
        return

    if scene.wire_frame:
        draw_line(target, a, b)
        draw_line(target, c, b)
        draw_line(target, a, c)

    area = abs((b - a).cross(c - a))  # twice the triangle's area
    if area == 0:
        return

    tangent, bitangent = _tangent_frame(tri) if material.needs_tbn else (Vec3(), Vec3())
    z1, z2, z3 = tri.s1.screen_pos.z, tri.s2.screen_pos.z, tri.s3.screen_pos.z
    transparent = bool(flags & MaterialFlags.TRANSPARENT)

    def fragment_at(px: int, py: int) -> Fragment:
        pp = Vec2(px + 0.5, py + 0.5)
        c1 = -(b - pp).cross(c - pp) / area
        c2 = -(c - pp).cross(a - pp) / area
        if tri.cull:
            c1, c2 = -c1, -c2
        c3 = 1.0 - c1 - c2
        inside = not (c1 < 0 or c2 < 0 or c3 < 0)
        c1, c2, c3 = _ieee_div(c1, z1), _ieee_div(c2, z2), _ieee_div(c3, z3)
        denom = _ieee_div(1.0, c1 + c2 + c3)

        def interpolate(p, q, r):
            return (c1 * p + c2 * q + c3 * r) * denom

        return Fragment(
            screen_pos=(px, py),
            z=interpolate(z1, z2, z3),
            world_pos=interpolate(tri.s1.world_pos, tri.s2.world_pos, tri.s3.world_pos),
            normal=interpolate(tri.s1.normal, tri.s2.normal, tri.s3.normal).normalized(),
            tangent=tangent,
            bitangent=bitangent,
            uv=interpolate(tri.uv1, tri.uv2, tri.uv3),
            material=material,
            is_back_face=tri.cull,
            inside=inside,
        )

    def post(fragment: Fragment) -> None:
        x, y = fragment.screen_pos
        if x < 0 or y < 0 or x >= width or y >= height or not fragment.inside:
            return
        index = target.index(x, y)
        base = material.base_color(fragment.uv, fragment.duv_dx, fragment.duv_dy, scene)
        if base.a < 0.5:
            return
        if target.depth[index] < fragment.z or fragment.z < 0:
            return
        if not transparent:
            target.depth[index] = fragment.z
        if scene.full_bright:
            target.colors[index] = base
            return
        fragment.base_color = base
        target.colors[index] = material.shade(fragment, target.colors[index], scene)

    min_x, max_x = min(a.x, b.x, c.x), max(a.x, b.x, c.x)
    min_y, max_y = min(a.y, b.y, c.y), max(a.y, b.y, c.y)
    x_start, x_stop = _first_quad(int(min_x)), min(math.ceil(max_x), width)
    y_start, y_stop = _first_quad(int(min_y)), min(math.ceil(max_y), height)

    for y in range(y_start, y_stop, 2):
        for x in range(x_start, x_stop, 2):
            f1 = fragment_at(x, y)
            f2 = fragment_at(x + 1, y)
            f3 = fragment_at(x, y + 1)
            f4 = fragment_at(x + 1, y + 1)
            f1.duv_dx = f2.duv_dx = f2.uv - f1.uv
            f3.duv_dx = f4.duv_dx = f4.uv - f3.uv
            f1.duv_dy = f3.duv_dy = f3.uv - f1.uv
            f2.duv_dy = f4.duv_dy = f4.uv - f2.uv
            for fragment in (f1, f2, f3, f4):
                post(fragment)