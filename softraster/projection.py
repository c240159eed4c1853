"""Perspective projection from camera-relative space to normalized screen space."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .geometry import Vec3, _ieee_div
from .matrix import Matrix, mat_mul, rotation_matrix


@dataclass
class Projection:
    """A projected vertex.

    ``world_pos`` is the position relative to the camera; ``screen_pos`` holds
    normalized x and y and the view depth as z.
    """

    world_pos: Vec3 = Vec3()
    screen_pos: Vec3 = Vec3()
    normal: Vec3 = Vec3()


def perspective_matrix(scene: Any) -> Matrix:
    """Build the scene's view-projection matrix, store it on the scene and return it."""
    rotation = rotation_matrix(-scene.cam_rotation)
    s = 1 / math.tan(scene.fov * math.pi / 360)
    f = -scene.far_clip / (scene.far_clip - scene.near_clip)
    perspective = [
        s, 0.0, 0.0, 0.0,
        0.0, s, 0.0, 0.0,
        0.0, 0.0, f, -1.0,
        0.0, 0.0, -f * scene.near_clip, 0.0,
    ]
    matrix = mat_mul(rotation, perspective, 4, 4, 4)
    scene.projection_matrix = matrix
    return matrix


def perspective_project(point: Vec3, scene: Any) -> Projection:
    """Project a world point with the scene's current projection matrix."""
    relative = point - scene.cam
    vx, vy, _, w = mat_mul([relative.x, relative.y, relative.z, 1.0], scene.projection_matrix, 1, 4, 4)
    return Projection(
        world_pos=relative,
        screen_pos=Vec3(_ieee_div(vx, w), _ieee_div(vy, w), -w),
    )