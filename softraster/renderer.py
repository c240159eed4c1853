"""Whole-scene rendering: projection, triangle assembly, drawing and fog."""

from __future__ import annotations

import math
from typing import Iterator

from .color import Color
from .geometry import Vec2, Vec3
from .matrix import mat_mul, rotate, transform_matrix
from .model import MaterialFlags, SceneObject
from .projection import Projection, perspective_matrix, perspective_project
from .raster import Triangle, draw_triangle
from .scene import FrameBuffer, Scene

_CLEAR_COLOR = Color(0.0, 0.0, 0.0, 1.0)
_FORWARD = Vec3(0.0, 0.0, 1.0)
_DOWN = Vec3(0.0, -1.0, 0.0)


def _project_object(obj: SceneObject, scene: Scene) -> list[Projection]:
    transform = transform_matrix(obj.rotation, obj.scale, obj.position)
    projected = []
    for vertex in obj.mesh.vertices:
        p = vertex.position
        x, y, z, _ = mat_mul([p.x, p.y, p.z, 1.0], transform, 1, 4, 4)
        n = vertex.normal
        nx, ny, nz, _ = mat_mul([n.x, n.y, n.z, 1.0], transform, 1, 4, 4)
        projection = perspective_project(Vec3(x, y, z), scene)
        # The transform also moved the normal; take the translation back out.
        projection.normal = (Vec3(nx, ny, nz) - obj.position).normalized()
        projected.append(projection)
    return projected


def _object_triangles(obj: SceneObject, scene: Scene) -> Iterator[Triangle]:
    mesh = obj.mesh
    if mesh is None:
        raise ValueError("a scene object has no mesh")
    projected = _project_object(obj, scene)
    vertices = mesh.vertices
    for face in mesh.faces:
        if face.material is None:
            raise ValueError(f"a face of mesh {mesh.label!r} has no material")
        s1, s2, s3 = projected[face.v1], projected[face.v2], projected[face.v3]
        normal = (s3.screen_pos - s1.screen_pos).cross(s2.screen_pos - s1.screen_pos).normalized()
        yield Triangle(
            s1=s1,
            s2=s2,
            s3=s3,
            uv1=vertices[face.v1].uv,
            uv2=vertices[face.v2].uv,
            uv3=vertices[face.v3].uv,
            material=face.material,
            cull=normal.z < 0,
        )


def render(scene: Scene, target: FrameBuffer) -> None:
    """Render every object of ``scene`` into ``target``.

    Opaque triangles are drawn first; transparent ones follow, farthest first.
    """
    target.clear(_CLEAR_COLOR, scene.far_clip)
    perspective_matrix(scene)
    scene.cam_direction = rotate(_FORWARD, scene.cam_rotation)

    for light in scene.lights:
        if not light.is_point_light:
            light.direction = rotate(_DOWN, light.rotation)

    opaque: list[Triangle] = []
    transparent: list[tuple[float, Triangle]] = []
    for obj in scene.objects:
        for tri in _object_triangles(obj, scene):
            if tri.material.flags & MaterialFlags.TRANSPARENT:
                depth = (tri.s1.screen_pos.z + tri.s2.screen_pos.z + tri.s3.screen_pos.z) / 3
                transparent.append((depth, tri))
            else:
                opaque.append(tri)

    for tri in opaque:
        draw_triangle(target, tri, scene)

    transparent.sort(key=lambda entry: entry[0], reverse=True)
    for _, tri in transparent:
        draw_triangle(target, tri, scene)

    if scene.fog_color.a > 0:
        apply_fog(scene, target)


def apply_fog(scene: Scene, target: FrameBuffer) -> None:
    """Blend each pixel towards the fog colour by its radial distance from the camera."""
    tan_fov = math.tan(scene.fov * math.pi / 360)
    fog = scene.fog_color
    width, height = target.size
    for y in range(height):
        for x in range(width):
            i = target.index(x, y)
            z = target.depth[i]
            world = Vec2(x / width, y / height) * z * tan_fov
            dist = math.sqrt(world.length_squared() + z * z)
            visibility = max(0.0, min(1.0, 0.5 ** (dist * fog.a)))
            target.colors[i] = target.colors[i] * visibility + fog * (1 - visibility)