import math

import pytest

from softraster.geometry import Vec3
from softraster.matrix import (
    identity_matrix,
    mat_add,
    mat_mul,
    mat_scalar_div,
    mat_scalar_mul,
    mat_sub,
    rotate,
    rotation_matrix,
    transform_matrix,
)

A = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
B = [0.5, -1.0, 2.0, 0.0, 3.5, -2.5]


def _transpose4(m):
    return [m[j * 4 + i] for i in range(4) for j in range(4)]


def test_add_sub_round_trip():
    assert mat_sub(mat_add(A, B, 2, 3), B, 2, 3) == pytest.approx(A)


def test_scalar_mul_div_round_trip():
    assert mat_scalar_div(mat_scalar_mul(A, 3.0, 2, 3), 3.0, 2, 3) == pytest.approx(A)


def test_scalar_div_by_zero_raises():
    with pytest.raises(ZeroDivisionError):
        mat_scalar_div(A, 0, 2, 3)


def test_size_mismatch_raises():
    with pytest.raises(ValueError):
        mat_add(A, B[:4], 2, 3)
    with pytest.raises(ValueError):
        mat_mul(A, B, 2, 3, 3)


def test_identity_is_neutral_for_multiplication():
    assert mat_mul(A, identity_matrix(3), 2, 3, 3) == pytest.approx(A)
    assert mat_mul(identity_matrix(2), A, 2, 2, 3) == pytest.approx(A)


def test_identity_layout():
    assert identity_matrix(2) == [1.0, 0.0, 0.0, 1.0]


def test_mat_mul_shape():
    assert len(mat_mul(A, B, 2, 3, 2)) == 4
    assert len(mat_mul(A, B, 3, 2, 3)) == 9


def test_rotation_matrix_of_zero_is_identity():
    assert rotation_matrix(Vec3()) == pytest.approx(identity_matrix(4))


def test_rotation_matrix_is_orthonormal():
    r = rotation_matrix(Vec3(0.3, -1.2, 2.0))
    product = mat_mul(r, _transpose4(r), 4, 4, 4)
    assert product == pytest.approx(identity_matrix(4), abs=1e-12)


def test_rotation_matrix_with_base_prepends_base():
    base = rotation_matrix(Vec3(0.4, 0.1, -0.7))
    r = Vec3(1.0, 0.5, 0.25)
    combined = rotation_matrix(r, base)
    assert combined == pytest.approx(mat_mul(base, rotation_matrix(r), 4, 4, 4))


def test_rotate_agrees_with_rotation_matrix():
    th = Vec3(0.7, -0.3, 1.9)
    v = Vec3(1.0, -2.0, 0.5)
    row = mat_mul([v.x, v.y, v.z, 1.0], rotation_matrix(th), 1, 4, 4)
    assert list(rotate(v, th)) == pytest.approx(row[:3])


def test_rotate_preserves_length():
    v = Vec3(3.0, 4.0, -1.0)
    assert rotate(v, Vec3(1.1, 2.2, -0.4)).length() == pytest.approx(v.length())


def test_rotate_by_zero_is_identity():
    v = Vec3(3.0, 4.0, -1.0)
    assert rotate(v, Vec3()) == v


def test_rotate_full_turn_returns_to_start():
    v = Vec3(0.5, -1.0, 2.0)
    out = rotate(v, Vec3(2 * math.pi, 2 * math.pi, 2 * math.pi))
    assert list(out) == pytest.approx(list(v))


def test_transform_matrix_translates_origin():
    m = transform_matrix(Vec3(0.3, 0.2, 0.1), Vec3(2, 2, 2), Vec3(5.0, -1.0, 3.0))
    row = mat_mul([0.0, 0.0, 0.0, 1.0], m, 1, 4, 4)
    assert row == pytest.approx([5.0, -1.0, 3.0, 1.0])


def test_transform_matrix_scales_then_translates_without_rotation():
    s = Vec3(2.0, 3.0, 4.0)
    t = Vec3(1.0, 1.0, 1.0)
    row = mat_mul([1.0, 1.0, 1.0, 1.0], transform_matrix(Vec3(), s, t), 1, 4, 4)
    assert row[:3] == pytest.approx(list(s + t))


def test_transform_matrix_matches_scale_rotate_sequence():
    r = Vec3(0.9, -0.4, 0.2)
    s = Vec3(1.5, 0.5, 2.0)
    v = Vec3(1.0, 2.0, -3.0)
    row = mat_mul([v.x, v.y, v.z, 1.0], transform_matrix(r, s, Vec3()), 1, 4, 4)
    assert row[:3] == pytest.approx(list(rotate(v.component_mul(s), r)))