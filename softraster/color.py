"""Floating-point RGBA colours with tone mapping."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Union

from .geometry import Vec3, _ieee_div

_Operand = Union["Color", float, int]


def _to_byte(component: float) -> int:
    if math.isnan(component):
        return 0
    return int(max(0.0, min(255.0, component * 255)))


@dataclass(frozen=True, slots=True)
class Color:
    """An RGBA colour whose components are nominally in [0, 1] but may exceed it."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 0.0

    @classmethod
    def from_rgba8(cls, r: int, g: int, b: int, a: int) -> Color:
        """Build a colour from 8-bit channel values."""
        return cls(r / 255.0, g / 255.0, b / 255.0, a / 255.0)

    def __iter__(self) -> Iterator[float]:
        yield self.r
        yield self.g
        yield self.b
        yield self.a

    def _apply(self, other: _Operand, op) -> Color:
        if isinstance(other, Color):
            return Color(
                op(self.r, other.r),
                op(self.g, other.g),
                op(self.b, other.b),
                op(self.a, other.a),
            )
        if isinstance(other, (int, float)):
            return Color(op(self.r, other), op(self.g, other), op(self.b, other), op(self.a, other))
        return NotImplemented

    def __add__(self, other: _Operand) -> Color:
        return self._apply(other, lambda x, y: x + y)

    def __sub__(self, other: _Operand) -> Color:
        return self._apply(other, lambda x, y: x - y)

    def __mul__(self, other: _Operand) -> Color:
        return self._apply(other, lambda x, y: x * y)

    def __rmul__(self, other: float) -> Color:
        if isinstance(other, (int, float)):
            return self * other
        return NotImplemented

    def __truediv__(self, other: _Operand) -> Color:
        return self._apply(other, _ieee_div)

    def to_rgb8(self) -> tuple[int, int, int]:
        """Opaque 8-bit RGB triple, each channel clamped to 0..255."""
        return _to_byte(self.r), _to_byte(self.g), _to_byte(self.b)

    def to_vec3(self) -> Vec3:
        return Vec3(self.r, self.g, self.b)

    def luminance(self) -> float:
        return 0.2126 * self.r + 0.7152 * self.g + 0.0722 * self.b

    def change_luminance(self, l_out: float) -> Color:
        """Scale the colour so that its luminance becomes ``l_out``."""
        return self * _ieee_div(l_out, self.luminance())

    def reinhardt_tonemap(self, maximum_color: float) -> Color:
        """Extended Reinhard tone mapping on luminance with the given white point."""
        l_old = self.luminance()
        numerator = l_old * (1.0 + _ieee_div(l_old, maximum_color * maximum_color))
        l_new = _ieee_div(numerator, 1.0 + l_old)
        return self.change_luminance(l_new)