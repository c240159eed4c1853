"""Reader for the whitespace-separated scene description format."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from PIL import Image

from .color import Color
from .geometry import Vec2, Vec3
from .materials import EarthMaterial, PhongMaterial
from .mesh import create_mesh, create_plane, create_sphere, load_obj
from .model import (
    Face,
    Light,
    Material,
    MaterialFlags,
    Mesh,
    PhongMaterialProps,
    SceneObject,
    Texture,
    Vertex,
)
from .scene import Scene
from .textures import load_color_texture, load_float_texture, load_vector_texture

logger = logging.getLogger(__name__)

_DEGREES = math.pi / 180.0

_BOOL_SETTINGS = {
    "backFaceCulling": "back_face_culling",
    "reverseAllFaces": "reverse_all_faces",
    "fullBright": "full_bright",
    "wireFrame": "wire_frame",
}

_PHONG_COLORS = {
    "diffuseColor": "diffuse",
    "specularColor": "specular",
    "tintColor": "tint",
    "emissiveColor": "emissive",
}

_PHONG_TEXTURES = {
    "diffuseTexture": "diffuse",
    "specularTexture": "specular",
    "tintTexture": "tint",
    "emissiveTexture": "emissive",
}

_EARTH_COLORS = {
    "terrainDiffuseColor": ("terrain_mat", "diffuse"),
    "cityLightsColor": ("terrain_mat", "emissive"),
    "oceanDiffuseColor": ("ocean_mat", "diffuse"),
    "oceanSpecularColor": ("ocean_mat", "specular"),
    "cloudDiffuseColor": ("cloud_mat", "diffuse"),
}

_EARTH_TEXTURES = {
    "terrainDiffuseTexture": ("terrain_mat", "diffuse"),
    "cityLightsTexture": ("terrain_mat", "emissive"),
}


@dataclass
class SceneCollection:
    """All scenes defined by scene files, and the one chosen for rendering."""

    scenes: list[Scene] = field(default_factory=list)
    render_scene: Optional[Scene] = None


def find_material(name: str, scene: Scene) -> Optional[Material]:
    """The scene's material called ``name``, or None (logged) if there is none."""
    for material in scene.materials:
        if material.name == name:
            return material
    logger.error("Could not find material %s", name)
    return None


def find_mesh(name: str, scene: Scene) -> Optional[Mesh]:
    """The scene's mesh labelled ``name``, or None (logged) if there is none."""
    for mesh in scene.meshes:
        if mesh.label == name:
            return mesh
    logger.error("Could not find mesh %s", name)
    return None


def find_scene(name: str, scenes: list[Scene]) -> Optional[Scene]:
    """The scene called ``name``, or None (logged) if there is none."""
    for scene in scenes:
        if scene.name == name:
            return scene
    logger.error("Could not find scene %s", name)
    return None


class _Tokens:
    """A stream of whitespace-separated words."""

    def __init__(self, text: str, source: str) -> None:
        self._words = iter(text.split())
        self._source = source

    def next(self) -> Optional[str]:
        return next(self._words, None)

    def word(self) -> str:
        word = self.next()
        if word is None:
            raise ValueError(f"{self._source}: unexpected end of file")
        return word

    def read_float(self) -> float:
        word = self.word()
        try:
            return float(word)
        except ValueError:
            raise ValueError(f"{self._source}: expected a number, got {word!r}") from None

    def read_int(self) -> int:
        word = self.word()
        try:
            return int(word)
        except ValueError:
            raise ValueError(f"{self._source}: expected an integer, got {word!r}") from None

    def read_vec2(self) -> Vec2:
        return Vec2(self.read_float(), self.read_float())

    def read_vec3(self) -> Vec3:
        return Vec3(self.read_float(), self.read_float(), self.read_float())

    def read_color(self) -> Color:
        return Color(self.read_float(), self.read_float(), self.read_float(), self.read_float())

    def skip_comment(self) -> None:
        """Skip words up to and including the closing ``#``."""
        for word in self._words:
            if word == "#":
                return

    def block(self) -> Iterator[str]:
        """Keys of a block that runs to ``end`` or the end of the file."""
        while (key := self.next()) is not None and key != "end":
            if key == "#":
                self.skip_comment()
                continue
            yield key


class _SceneFileParser:
    def __init__(self, path: Path, collection: SceneCollection, editing: Optional[Scene]) -> None:
        self.path = path
        self.collection = collection
        self.editing = editing
        self.tokens = _Tokens(path.read_text(), str(path))

    @property
    def scene(self) -> Scene:
        if self.editing is None:
            raise ValueError(f"{self.path}: no scene is being edited; use 'scene edit <name>'")
        return self.editing

    def run(self) -> None:
        commands: dict[str, Callable[[], None]] = {
            "import": self._import,
            "scene": self._scene_command,
            "cam": self._cam,
            "nearFar": self._near_far,
            "fov": self._fov,
            "set": self._set,
            "fog": self._fog,
            "ambientLight": self._ambient_light,
            "new": self._new,
        }
        while (word := self.tokens.next()) is not None:
            if word == "#":
                self.tokens.skip_comment()
                continue
            handler = commands.get(word)
            if handler is not None:
                handler()

    def _import(self) -> None:
        parse_scene_file(self.path.parent / self.tokens.word(), self.collection, self.editing)

    def _scene_command(self) -> None:
        verb = self.tokens.word()
        name = self.tokens.word()
        if verb == "new":
            self.collection.scenes.append(Scene(name=name))
        elif verb == "edit":
            self.editing = find_scene(name, self.collection.scenes)
        elif verb == "render":
            self.collection.render_scene = find_scene(name, self.collection.scenes)

    def _cam(self) -> None:
        setting = self.tokens.word()
        if setting == "pos":
            self.scene.cam = self.tokens.read_vec3()
        elif setting == "rot":
            self.scene.cam_rotation = self.tokens.read_vec3() * _DEGREES
        else:
            logger.error("Invalid cam setting %s", setting)

    def _near_far(self) -> None:
        scene = self.scene
        scene.near_clip = self.tokens.read_float()
        scene.far_clip = self.tokens.read_float()

    def _fov(self) -> None:
        self.scene.fov = self.tokens.read_float()

    def _set(self) -> None:
        setting = self.tokens.word()
        if setting == "renderMode":
            self.scene.render_mode = self.tokens.read_int()
        elif setting in _BOOL_SETTINGS:
            setattr(self.scene, _BOOL_SETTINGS[setting], bool(self.tokens.read_int()))
        elif setting == "whitePoint":
            self.scene.white_point = self.tokens.read_float()
        else:
            logger.error("Invalid setting %s", setting)

    def _fog(self) -> None:
        self.scene.fog_color = self.tokens.read_color()

    def _ambient_light(self) -> None:
        self.scene.ambient_light = self.tokens.read_color()

    def _new(self) -> None:
        kind = self.tokens.word()
        handler = {
            "light": self._new_light,
            "material": self._new_material,
            "mesh": self._new_mesh,
            "object": self._new_object,
        }.get(kind)
        if handler is None:
            logger.error("Invalid command %s", kind)
            return
        handler()

    def _new_light(self) -> None:
        scene = self.scene
        light_type = self.tokens.word()
        light = Light()
        if light_type == "directional":
            light.rotation = self.tokens.read_vec3() * _DEGREES
            light.is_point_light = False
        elif light_type == "point":
            light.direction = self.tokens.read_vec3()
            light.is_point_light = True
        else:
            logger.error("Invalid light type %s", light_type)
        light.color = self.tokens.read_color()
        scene.lights.append(light)

    def _load(self, loader: Callable[[Image.Image], Texture], label: str) -> Texture:
        name = self.tokens.word()
        logger.info("Loading %s %s", label, name)
        with Image.open(self.path.parent / name) as image:
            return loader(image)

    def _color_texture(self) -> Texture:
        return self._load(load_color_texture, "texture")

    def _float_texture(self) -> Texture:
        return self._load(load_float_texture, "texture")

    def _normal_map(self, props: PhongMaterialProps) -> None:
        name = self.tokens.word()
        strength = self.tokens.read_float()
        pom = self.tokens.read_int()
        logger.info("Loading normal map %s", name)
        with Image.open(self.path.parent / name) as image:
            props.normal_map = load_vector_texture(image)
            props.normal_map_strength = strength
            if pom != -1:
                props.pom = pom
                props.displacement_map = load_float_texture(image)

    def _new_material(self) -> None:
        scene = self.scene
        name = self.tokens.word()
        material_type = self.tokens.word()
        if material_type == "phong":
            scene.materials.append(self._phong(name))
        elif material_type == "earth":
            scene.materials.append(self._earth(name))
        else:
            logger.error("Invalid material type %s", material_type)

    def _phong(self, name: str) -> PhongMaterial:
        props = PhongMaterialProps()
        flags = MaterialFlags.NONE
        for key in self.tokens.block():
            if key in _PHONG_COLORS:
                getattr(props, _PHONG_COLORS[key]).color = self.tokens.read_color()
            elif key in _PHONG_TEXTURES:
                getattr(props, _PHONG_TEXTURES[key]).texture = self._color_texture()
            elif key == "normalMap":
                self._normal_map(props)
            elif key == "transparent":
                flags |= MaterialFlags.TRANSPARENT
            elif key == "doubleSided":
                flags |= MaterialFlags.DOUBLE_SIDED
            else:
                logger.error("Invalid material property %s", key)
        return PhongMaterial(props, name, flags)

    def _earth(self, name: str) -> EarthMaterial:
        material = EarthMaterial(name)
        for key in self.tokens.block():
            if key in _EARTH_COLORS:
                layer, channel = _EARTH_COLORS[key]
                getattr(getattr(material, layer).props, channel).color = self.tokens.read_color()
            elif key in _EARTH_TEXTURES:
                layer, channel = _EARTH_TEXTURES[key]
                getattr(getattr(material, layer).props, channel).texture = self._color_texture()
            elif key == "oceanMask":
                material.ocean_mask = self._float_texture()
            elif key == "cloudTexture":
                material.cloud_texture = self._float_texture()
            elif key == "normalMap":
                self._normal_map(material.terrain_mat.props)
            else:
                logger.error("Invalid material property %s", key)
        return material

    def _new_mesh(self) -> None:
        scene = self.scene
        name = self.tokens.word()
        mesh_type = self.tokens.word()
        if mesh_type == "obj":
            material_name = self.tokens.word()
            obj_path = self.tokens.word()
            scene.meshes.append(load_obj(obj_path, find_material(material_name, scene), name))
        elif mesh_type in ("sphere", "plane"):
            first = self.tokens.read_int()
            second = self.tokens.read_int()
            material = find_material(self.tokens.word(), scene)
            build = create_sphere if mesh_type == "sphere" else create_plane
            scene.meshes.append(build(material, name, first, second))
        elif mesh_type == "custom":
            scene.meshes.append(self._custom_mesh(name, scene))
        else:
            logger.error("Invalid mesh type %s", mesh_type)

    def _custom_mesh(self, name: str, scene: Scene) -> Mesh:
        vertices: list[Vertex] = []
        faces: list[Face] = []
        material: Optional[Material] = None
        for key in self.tokens.block():
            if key == "v":
                index = self.tokens.read_int()
                position = self.tokens.read_vec3()
                uv = self.tokens.read_vec2()
                if index != len(vertices):
                    logger.error("Invalid vertex index %d, expected %d", index, len(vertices))
                vertices.append(Vertex(position=position, uv=uv))
            elif key == "f":
                i1, i2, i3 = (self.tokens.read_int() for _ in range(3))
                faces.append(Face(i1, i2, i3, material))
            elif key == "m":
                material = find_material(self.tokens.word(), scene)
            else:
                logger.error("Invalid custom mesh entry %s", key)
        return create_mesh(faces, vertices, name)

    def _new_object(self) -> None:
        scene = self.scene
        mesh = find_mesh(self.tokens.word(), scene)
        position = self.tokens.read_vec3()
        scale = self.tokens.read_vec3()
        rotation = self.tokens.read_vec3() * _DEGREES
        scene.objects.append(SceneObject(mesh=mesh, position=position, rotation=rotation, scale=scale))


def parse_scene_file(
    path: Union[str, Path],
    collection: SceneCollection,
    editing: Optional[Scene] = None,
) -> None:
    """Read a scene file into ``collection``, applying edits to ``editing`` at first.

    Imported files are read relative to the importing file and start with the
    scene being edited at the point of the import.
    """
    _SceneFileParser(Path(path), collection, editing).run()