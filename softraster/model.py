"""Core scene data: materials, textures, meshes, objects and lights."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Any, Generic, Optional, TypeVar

from .color import Color
from .geometry import Vec2, Vec3

T = TypeVar("T")


class MaterialFlags(IntFlag):
    """Rendering flags for a material."""

    NONE = 0
    # Drawn last, sorted back to front, blending with what lies behind.
    TRANSPARENT = 1 << 0
    # Back faces stay visible; used for flat geometry.
    DOUBLE_SIDED = 1 << 1


@dataclass
class Fragment:
    """A candidate pixel produced while rasterizing a triangle."""

    screen_pos: tuple[int, int] = (0, 0)
    z: float = 0.0
    world_pos: Vec3 = Vec3()
    normal: Vec3 = Vec3()
    tangent: Vec3 = Vec3()
    bitangent: Vec3 = Vec3()
    uv: Vec2 = Vec2()
    duv_dx: Vec2 = Vec2()
    duv_dy: Vec2 = Vec2()
    base_color: Color = Color()
    material: Optional["Material"] = None
    is_back_face: bool = False
    inside: bool = False


class Material(ABC):
    """Base class for surface shaders."""

    def __init__(
        self,
        name: str,
        flags: MaterialFlags = MaterialFlags.NONE,
        needs_tbn: bool = False,
    ) -> None:
        self.name = name
        self.flags = MaterialFlags(flags)
        self.needs_tbn = needs_tbn

    @abstractmethod
    def shade(self, fragment: Fragment, previous: Color, scene: Any) -> Color:
        """Colour of the fragment given the colour already in the frame."""

    @abstractmethod
    def base_color(self, uv: Vec2, duv_dx: Vec2, duv_dy: Vec2, scene: Any) -> Color:
        """Unlit surface colour at ``uv``; alpha below 0.5 means cut out."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, flags={self.flags!r})"


@dataclass
class Texture(Generic[T]):
    """A texture stored as a mipmap atlas about twice the base size in each axis."""

    pixels: list[T]
    size: tuple[int, int]
    atlas_size: tuple[int, int]
    mip_count: tuple[int, int]


@dataclass
class MaterialMap:
    """A constant colour, optionally modulated by a texture."""

    color: Color = Color()
    texture: Optional[Texture[Color]] = None


@dataclass
class PhongMaterialProps:
    """Parameters of a Phong material.

    diffuse: base colour; alpha below 0.5 cuts the surface out.
    specular: highlight colour; alpha 0 disables it, otherwise
        alpha = 10 * log2(shininess).
    tint: for transparent materials, filters light from behind; for
        double-sided opaque ones, the colour of subsurface scattering.
    emissive: light the surface gives off by itself.
    normal_map_strength: 1 keeps the source normals, 0 flattens them.
    pom: parallax occlusion steps; 0 means simple parallax mapping.
    """

    diffuse: MaterialMap = field(default_factory=MaterialMap)
    specular: MaterialMap = field(default_factory=MaterialMap)
    tint: MaterialMap = field(default_factory=MaterialMap)
    emissive: MaterialMap = field(default_factory=MaterialMap)
    normal_map: Optional[Texture[Vec3]] = None
    normal_map_strength: float = 0.0
    displacement_map: Optional[Texture[float]] = None
    pom: int = 0


@dataclass
class Vertex:
    position: Vec3 = Vec3()
    uv: Vec2 = Vec2()
    normal: Vec3 = Vec3()


@dataclass
class Face:
    """A triangle given by three vertex indices."""

    v1: int = 0
    v2: int = 0
    v3: int = 0
    material: Optional[Material] = None


@dataclass
class Mesh:
    label: str = ""
    vertices: list[Vertex] = field(default_factory=list)
    faces: list[Face] = field(default_factory=list)


@dataclass
class SceneObject:
    """A placed instance of a mesh."""

    mesh: Optional[Mesh] = None
    position: Vec3 = Vec3()
    rotation: Vec3 = Vec3()
    scale: Vec3 = Vec3(1.0, 1.0, 1.0)


@dataclass
class Light:
    """A directional or point light; the colour's alpha is its intensity.

    For a directional light ``direction`` is the light vector, derived from
    ``rotation``; for a point light it is the light's world position.
    """

    rotation: Vec3 = Vec3()
    direction: Vec3 = Vec3()
    color: Color = Color()
    is_point_light: bool = False