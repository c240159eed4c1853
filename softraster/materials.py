"""Surface shaders: a Phong material and a layered Earth material."""

from __future__ import annotations

import math
from typing import Any, Optional

from .color import Color
from .geometry import Vec2, Vec3, _ieee_div
from .model import Fragment, Material, MaterialFlags, MaterialMap, PhongMaterialProps, Texture
from .textures import texture_sample

_UNIT = Vec3(1.0, 1.0, 1.0)
_FLIP_XY = Vec3(-1.0, -1.0, 1.0)


def reflect(v: Vec3, normal: Vec3) -> Vec3:
    """Mirror ``v`` about the plane whose normal is ``normal``."""
    return v - normal * v.dot(normal) * 2.0


def _pow(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf


def _sample_map(m: MaterialMap, uv: Vec2, duv_dx: Vec2, duv_dy: Vec2, scene: Any) -> Color:
    if m.texture is None:
        return m.color
    return m.color * texture_sample(m.texture, uv, duv_dx, duv_dy, scene.texture_filtering_mode)


class PhongMaterial(Material):
    """Blinn-free Phong shading with subsurface scattering, tint and normal maps."""

    def __init__(
        self,
        props: PhongMaterialProps,
        name: str,
        flags: MaterialFlags = MaterialFlags.NONE,
    ) -> None:
        super().__init__(name, flags, props.normal_map is not None)
        self.props = props

    def base_color(self, uv: Vec2, duv_dx: Vec2, duv_dy: Vec2, scene: Any) -> Color:
        return _sample_map(self.props.diffuse, uv, duv_dx, duv_dy, scene)

    def _surface_normal(self, fragment: Fragment, scene: Any) -> Vec3:
        props = self.props
        if props.normal_map is None:
            return fragment.normal
        sampled = texture_sample(
            props.normal_map, fragment.uv, fragment.duv_dx, fragment.duv_dy,
            scene.texture_filtering_mode,
        )
        n = (sampled * 2.0 - _UNIT).component_mul(_FLIP_XY)
        strength = props.normal_map_strength
        combined = (
            fragment.tangent * n.x * strength
            + fragment.bitangent * n.y * strength
            + fragment.normal * n.z
        )
        return combined.normalized()

    def shade(self, fragment: Fragment, previous: Color, scene: Any) -> Color:
        uv, duv_dx, duv_dy = fragment.uv, fragment.duv_dx, fragment.duv_dy
        transparent = bool(self.flags & MaterialFlags.TRANSPARENT)
        double_sided = bool(self.flags & MaterialFlags.DOUBLE_SIDED)
        scatters = not transparent and double_sided

        view_dir = (scene.cam - fragment.world_pos).normalized()
        if scatters and fragment.is_back_face:
            fragment.normal = -fragment.normal

        mat_specular = _sample_map(self.props.specular, uv, duv_dx, duv_dy, scene)
        shininess = _pow(2.0, mat_specular.a * 25.5)
        mat_emissive = _sample_map(self.props.emissive, uv, duv_dx, duv_dy, scene)

        diffuse = scene.ambient_light * scene.ambient_light.a
        sss = Color(0.0, 0.0, 0.0, 1.0)
        specular = Color(0.0, 0.0, 0.0, 1.0)

        normal = self._surface_normal(fragment, scene)

        for light in scene.lights:
            direction = light.direction
            intensity = light.color.a
            if light.is_point_light:
                d = light.direction - fragment.world_pos
                l2 = d.length_squared()
                direction = d / math.sqrt(l2)
                intensity = _ieee_div(intensity, l2)

            received = normal.dot(direction)
            if transparent and double_sided:
                received = abs(received)

            if received > 0:
                if fragment.base_color.a > 0:
                    diffuse = diffuse + light.color * max(received, 0.0) * intensity
            elif scatters:
                sss = sss + light.color * max(-received, 0.0) * intensity

            if mat_specular.a > 0:
                highlight = _pow(max(view_dir.dot(reflect(direction, normal)), 0.0), shininess)
                if received <= 0:
                    highlight = 0.0
                specular = specular + light.color * highlight * intensity

        mat_tint = Color(0.0, 0.0, 0.0, 0.0)
        if scatters:
            mat_tint = _sample_map(self.props.tint, uv, duv_dx, duv_dy, scene)

        lighting = diffuse * fragment.base_color + sss * mat_tint + specular * mat_specular + mat_emissive

        if transparent:
            if mat_tint.a == 0:
                mat_tint = _sample_map(self.props.tint, uv, duv_dx, duv_dy, scene)
            lighting = previous * mat_tint + lighting

        if scene.white_point == 0:
            scene.maximum_color = max(scene.maximum_color, lighting.luminance())

        return lighting


class EarthMaterial(Material):
    """A planet surface: terrain or ocean below a layer of clouds."""

    def __init__(self, name: str) -> None:
        super().__init__(name, MaterialFlags.NONE, True)
        self.terrain_mat = PhongMaterial(PhongMaterialProps(), f"{name} Terrain")
        self.ocean_mat = PhongMaterial(PhongMaterialProps(), f"{name} Ocean")
        self.cloud_mat = PhongMaterial(PhongMaterialProps(), f"{name} Cloud")
        self.ocean_mask: Optional[Texture[float]] = None
        self.cloud_texture: Optional[Texture[float]] = None

    def shade(self, fragment: Fragment, previous: Color, scene: Any) -> Color:
        if self.ocean_mask is None or self.cloud_texture is None:
            raise ValueError(f"material {self.name!r} needs an ocean mask and a cloud texture")
        mode = scene.texture_filtering_mode
        uv, duv_dx, duv_dy = fragment.uv, fragment.duv_dx, fragment.duv_dy

        is_ocean = texture_sample(self.ocean_mask, uv, duv_dx, duv_dy, mode) > 0.5
        ground_mat = self.ocean_mat if is_ocean else self.terrain_mat
        ground_lighting = ground_mat.shade(fragment, previous, scene)

        # The base colour holds the terrain diffuse; clouds use their own colour.
        fragment.base_color = self.cloud_mat.props.diffuse.color
        cloud_lighting = self.cloud_mat.shade(fragment, previous, scene)
        cloud_intensity = texture_sample(self.cloud_texture, uv, duv_dx, duv_dy, mode)
        return ground_lighting * (1 - cloud_intensity) + cloud_lighting * cloud_intensity

    def base_color(self, uv: Vec2, duv_dx: Vec2, duv_dy: Vec2, scene: Any) -> Color:
        texture = self.terrain_mat.props.diffuse.texture
        if texture is None:
            raise ValueError(f"material {self.name!r} has no terrain diffuse texture")
        return texture_sample(texture, uv, duv_dx, duv_dy, scene.texture_filtering_mode)