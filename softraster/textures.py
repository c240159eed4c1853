"""Mipmapped texture atlases and their sampling filters."""

from __future__ import annotations

import math
from enum import IntEnum
from typing import Any, Callable, MutableSequence, TypeVar

from .color import Color
from .geometry import Vec2, Vec3
from .model import Texture

T = TypeVar("T")


class FilterMode(IntEnum):
    """How texels are combined when sampling."""

    NEAREST = 0
    BILINEAR = 1
    TRILINEAR = 2


def lerp2d(a: T, b: T, c: T, d: T, t1: float, t2: float) -> T:
    """Bilinear blend: ``t1`` moves from a to b (and c to d), ``t2`` from ab to cd."""
    return (b * t1 + a * (1 - t1)) * (1 - t2) + (d * t1 + c * (1 - t1)) * t2


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def texture_coordinates(texture: Texture, uv: Vec2, mip_level: tuple[int, int]) -> Vec2:
    """Atlas position of ``uv`` inside the mipmap at ``mip_level``."""
    mx, my = mip_level
    width, height = texture.size
    atlas_w, atlas_h = texture.atlas_size
    count_x, count_y = texture.mip_count
    x = _clamp01(uv.x) * (width / 2 ** mx - 1) + int(atlas_w - 2 ** (count_x - mx + 1) + 1)
    y = _clamp01(uv.y) * (height / 2 ** my - 1) + int(atlas_h - 2 ** (count_y - my + 1) + 1)
    return Vec2(x, y)


def bilinear_filter(texture: Texture[T], uv: Vec2, mip_level: tuple[int, int]) -> T:
    """Blend the four texels around ``uv`` in the given mipmap."""
    pos = texture_coordinates(texture, uv, mip_level)
    x0, y0 = math.floor(pos.x), math.floor(pos.y)
    x1, y1 = math.ceil(pos.x), math.ceil(pos.y)
    stride = texture.atlas_size[0]
    pixels = texture.pixels
    s1 = pixels[x0 + stride * y0]
    s2 = pixels[x0 + stride * y1]
    s3 = pixels[x1 + stride * y0]
    s4 = pixels[x1 + stride * y1]
    return lerp2d(s1, s2, s3, s4, pos.y - y0, pos.x - x0)


def _mip_level_f(rho: float, size: int) -> float:
    product = rho * size
    return math.log2(product) if product > 0 else -math.inf


def _mip_index(level: float, count: int, rounding: Callable[[float], float]) -> int:
    if math.isnan(level) or level == -math.inf:
        return 0
    if level == math.inf:
        return count
    return max(0, min(count, int(rounding(level))))


def texture_sample(
    texture: Texture[T], uv: Vec2, duv_dx: Vec2, duv_dy: Vec2, mode: FilterMode
) -> T:
    """Sample ``texture`` at ``uv``, choosing the mip level from the UV derivatives."""
    rho = max(duv_dx.length(), duv_dy.length())
    level_x = _mip_level_f(rho, texture.size[0])
    level_y = _mip_level_f(rho, texture.size[1])
    count_x, count_y = texture.mip_count
    mip_level = (_mip_index(level_x, count_x, math.floor), _mip_index(level_y, count_y, math.floor))

    if mode == FilterMode.BILINEAR:
        return bilinear_filter(texture, uv, mip_level)
    if mode == FilterMode.TRILINEAR:
        mip_level2 = (_mip_index(level_x, count_x, math.ceil), _mip_index(level_y, count_y, math.ceil))
        t = level_x - math.floor(level_x) if math.isfinite(level_x) else 0.0
        return (
            bilinear_filter(texture, uv, mip_level) * (1 - t)
            + bilinear_filter(texture, uv, mip_level2) * t
        )
    pos = texture_coordinates(texture, uv, mip_level)
    x = math.floor(pos.x + 0.5)
    y = math.floor(pos.y + 0.5)
    return texture.pixels[x + texture.atlas_size[0] * y]


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def generate_mipmaps(pixels: MutableSequence[Any], width: int, height: int, atlas_width: int) -> None:
    """Fill the mipmap part of an atlas in place from its top-left base image.

    Halved-width copies go to the right of the base, then every row band is
    halved in height below it.
    """
    if not (_is_power_of_two(width) and _is_power_of_two(height)):
        raise ValueError(f"texture size {width}x{height} is not a power of 2")
    if len(pixels) < atlas_width * (2 * height - 1):
        raise ValueError("pixel buffer is smaller than the atlas")

    def at(x: int, y: int) -> int:
        return x + atlas_width * y

    w, xx = width // 2, 0
    while w > 0:
        for y in range(height):
            for x in range(w):
                pixels[at(xx + x + w * 2, y)] = (
                    pixels[at(xx + x * 2, y)] + pixels[at(xx + x * 2 + 1, y)]
                ) / 2.0
        xx += w * 2
        w //= 2

    h, yy = height // 2, 0
    while h > 0:
        for y in range(h):
            for x in range(atlas_width):
                pixels[at(x, yy + h * 2 + y)] = (
                    pixels[at(x, yy + y * 2)] + pixels[at(x, yy + y * 2 + 1)]
                ) / 2.0
        yy += h * 2
        h //= 2


def _load_texture(image: Any, convert: Callable[[tuple], T], zero: T) -> Texture[T]:
    rgba = image.convert("RGBA")
    width, height = rgba.size
    if width < 1 or height < 1:
        raise ValueError(f"cannot load an empty {width}x{height} image")
    atlas_w, atlas_h = width * 2 - 1, height * 2 - 1
    pixels: list[T] = [zero] * (atlas_w * atlas_h)
    access = rgba.load()
    for y in range(height):
        row = y * atlas_w
        for x in range(width):
            pixels[row + x] = convert(access[x, y])
    generate_mipmaps(pixels, width, height, atlas_w)
    mip_count = (int(math.log2(width)), int(math.log2(height)))
    return Texture(pixels, (width, height), (atlas_w, atlas_h), mip_count)


def load_color_texture(image: Any) -> Texture[Color]:
    """Colour texture from a Pillow image."""
    return _load_texture(image, lambda p: Color.from_rgba8(*p), Color())


def load_vector_texture(image: Any) -> Texture[Vec3]:
    """Vector texture (such as a normal map) from the RGB channels of an image."""
    return _load_texture(image, lambda p: Color.from_rgba8(*p).to_vec3(), Vec3())


def load_float_texture(image: Any) -> Texture[float]:
    """Scalar texture from the alpha channel of an image."""
    return _load_texture(image, lambda p: p[3] / 255.0, 0.0)