"""Row-major flat matrices for row-vector transforms."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from .geometry import Vec3

Matrix = list[float]


def _require_size(m: Sequence[float], size: int, label: str) -> None:
    if len(m) != size:
        raise ValueError(f"{label} has {len(m)} elements, expected {size}")


def mat_add(a: Sequence[float], b: Sequence[float], rows: int, cols: int) -> Matrix:
    _require_size(a, rows * cols, "a")
    _require_size(b, rows * cols, "b")
    return [x + y for x, y in zip(a, b)]


def mat_sub(a: Sequence[float], b: Sequence[float], rows: int, cols: int) -> Matrix:
    _require_size(a, rows * cols, "a")
    _require_size(b, rows * cols, "b")
    return [x - y for x, y in zip(a, b)]


def mat_scalar_mul(a: Sequence[float], scalar: float, rows: int, cols: int) -> Matrix:
    _require_size(a, rows * cols, "a")
    return [x * scalar for x in a]


def mat_scalar_div(a: Sequence[float], scalar: float, rows: int, cols: int) -> Matrix:
    """Divide every element by ``scalar``; a zero divisor raises ZeroDivisionError."""
    _require_size(a, rows * cols, "a")
    if scalar == 0:
        raise ZeroDivisionError("matrix division by zero")
    return [x / scalar for x in a]


def mat_mul(
    a: Sequence[float], b: Sequence[float], a_rows: int, a_cols: int, b_cols: int
) -> Matrix:
    """Product of an a_rows x a_cols matrix and an a_cols x b_cols matrix."""
    _require_size(a, a_rows * a_cols, "a")
    _require_size(b, a_cols * b_cols, "b")
    rows = [a[i * a_cols:(i + 1) * a_cols] for i in range(a_rows)]
    columns = [b[j::b_cols] for j in range(b_cols)]
    return [sum(x * y for x, y in zip(row, col)) for row in rows for col in columns]


def identity_matrix(size: int) -> Matrix:
    return [1.0 if i == j else 0.0 for i in range(size) for j in range(size)]


def _axis_rotations(r: Vec3) -> tuple[Matrix, Matrix, Matrix]:
    sx, sy, sz = math.sin(r.x), math.sin(r.y), math.sin(r.z)
    cx, cy, cz = math.cos(r.x), math.cos(r.y), math.cos(r.z)
    rot_x = [
        1.0, 0.0, 0.0, 0.0,
        0.0, cx, sx, 0.0,
        0.0, -sx, cx, 0.0,
        0.0, 0.0, 0.0, 1.0,
    ]
    rot_y = [
        cy, 0.0, -sy, 0.0,
        0.0, 1.0, 0.0, 0.0,
        sy, 0.0, cy, 0.0,
        0.0, 0.0, 0.0, 1.0,
    ]
    rot_z = [
        cz, sz, 0.0, 0.0,
        -sz, cz, 0.0, 0.0,
        0.0, 0.0, 1.0, 0.0,
        0.0, 0.0, 0.0, 1.0,
    ]
    return rot_x, rot_y, rot_z


def rotation_matrix(r: Vec3, base: Optional[Sequence[float]] = None) -> Matrix:
    """4x4 rotation about X, then Y, then Z; appended to ``base`` when given."""
    rot_x, rot_y, rot_z = _axis_rotations(r)
    out = list(rot_x) if base is None else mat_mul(base, rot_x, 4, 4, 4)
    for step in (rot_y, rot_z):
        out = mat_mul(out, step, 4, 4, 4)
    return out


def transform_matrix(r: Vec3, s: Vec3, t: Vec3) -> Matrix:
    """4x4 matrix that scales, rotates and then translates a row vector."""
    scale = [
        s.x, 0.0, 0.0, 0.0,
        0.0, s.y, 0.0, 0.0,
        0.0, 0.0, s.z, 0.0,
        0.0, 0.0, 0.0, 1.0,
    ]
    translation = [
        1.0, 0.0, 0.0, 0.0,
        0.0, 1.0, 0.0, 0.0,
        0.0, 0.0, 1.0, 0.0,
        t.x, t.y, t.z, 1.0,
    ]
    return mat_mul(rotation_matrix(r, scale), translation, 4, 4, 4)


def rotate(v: Vec3, th: Vec3) -> Vec3:
    """Rotate ``v`` about X (pitch), then Y (yaw), then Z (roll)."""
    sin_x, cos_x = math.sin(th.x), math.cos(th.x)
    sin_y, cos_y = math.sin(th.y), math.cos(th.y)
    sin_z, cos_z = math.sin(th.z), math.cos(th.z)

    x1 = v.x
    y1 = cos_x * v.y - sin_x * v.z
    z1 = sin_x * v.y + cos_x * v.z

    x2 = cos_y * x1 + sin_y * z1
    y2 = y1
    z2 = -sin_y * x1 + cos_y * z1

    x3 = cos_z * x2 - sin_z * y2
    y3 = sin_z * x2 + cos_z * y2
    return Vec3(x3, y3, z2)