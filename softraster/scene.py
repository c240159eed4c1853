"""Scene description and the frame and depth buffers it is rendered into."""

from __future__ import annotations

from dataclasses import dataclass, field

from .color import Color
from .geometry import Vec3
from .matrix import identity_matrix
from .model import Light, Material, Mesh, SceneObject
from .textures import FilterMode

DEFAULT_FRAME_SIZE = (500, 500)


@dataclass(eq=False)
class Scene:
    """Everything needed to render one view: assets, camera and render settings."""

    name: str = ""

    lights: list[Light] = field(default_factory=list)
    ambient_light: Color = Color(1.0, 1.0, 1.0, 0.1)

    materials: list[Material] = field(default_factory=list)
    meshes: list[Mesh] = field(default_factory=list)

    objects: list[SceneObject] = field(default_factory=list)

    cam: Vec3 = Vec3()
    cam_rotation: Vec3 = Vec3()
    cam_direction: Vec3 = Vec3()
    near_clip: float = 0.1
    far_clip: float = 100.0
    fov: float = 90.0
    projection_matrix: list[float] = field(default_factory=lambda: identity_matrix(4))

    maximum_color: float = 0.0

    render_mode: int = 0
    back_face_culling: bool = True
    reverse_all_faces: bool = False
    full_bright: bool = False
    wire_frame: bool = False
    orbit: bool = False
    texture_filtering_mode: FilterMode = FilterMode.NEAREST
    white_point: float = 1.0
    fog_color: Color = Color(0.0, 0.0, 0.0, 0.0)


class FrameBuffer:
    """A colour buffer and a depth buffer of the same size, stored row by row."""

    def __init__(self, width: int = DEFAULT_FRAME_SIZE[0], height: int = DEFAULT_FRAME_SIZE[1]) -> None:
        self.width = 0
        self.height = 0
        self.colors: list[Color] = []
        self.depth: list[float] = []
        self.resize(width, height)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def resize(self, width: int, height: int) -> None:
        """Reallocate both buffers for a new frame size."""
        if width < 0 or height < 0:
            raise ValueError(f"invalid frame size {width}x{height}")
        self.width = width
        self.height = height
        count = width * height
        self.colors = [Color(0.0, 0.0, 0.0, 1.0)] * count
        self.depth = [0.0] * count

    def index(self, x: int, y: int) -> int:
        """Flat buffer index of pixel (x, y)."""
        return x + self.width * y

    def clear(self, color: Color, depth: float) -> None:
        """Fill every pixel with ``color`` and every depth entry with ``depth``."""
        count = self.width * self.height
        self.colors = [color] * count
        self.depth = [depth] * count

    def __repr__(self) -> str:
        return f"FrameBuffer(width={self.width}, height={self.height})"