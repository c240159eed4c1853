"""Mesh construction: smooth normals, procedural shapes and OBJ loading."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterable, Optional, Union

from .geometry import Vec2, Vec3
from .model import Face, Material, Mesh, Vertex

logger = logging.getLogger(__name__)

MAX_ELEMENTS = 0xFFFF


def _check_limits(n_vertices: int, n_faces: int) -> None:
    if n_vertices > MAX_ELEMENTS:
        raise ValueError(f"mesh has {n_vertices} vertices, at most {MAX_ELEMENTS} allowed")
    if n_faces > MAX_ELEMENTS:
        raise ValueError(f"mesh has {n_faces} faces, at most {MAX_ELEMENTS} allowed")


def create_mesh(faces: Iterable[Face], vertices: Iterable[Vertex], name: str) -> Mesh:
    """Build a mesh, adding each face's normal to the normals of its vertices."""
    faces = list(faces)
    vertices = [Vertex(v.position, v.uv, v.normal) for v in vertices]
    _check_limits(len(vertices), len(faces))

    for face in faces:
        indices = (face.v1, face.v2, face.v3)
        if not all(0 <= i < len(vertices) for i in indices):
            raise ValueError(f"face {indices} refers to a missing vertex")
        p1, p2, p3 = (vertices[i].position for i in indices)
        normal = (p3 - p1).cross(p2 - p1).normalized()
        for i in indices:
            vertices[i].normal = vertices[i].normal + normal

    if any(v.normal.length_squared() == 0 for v in vertices):
        logger.warning(
            "A vertex has zero normal! This usually happens when a face is winded "
            "incorrectly and cancels out another face's normal."
        )
    return Mesh(label=name, vertices=vertices, faces=faces)


def create_sphere(material: Optional[Material], name: str, stacks: int, sectors: int) -> Mesh:
    """Unit UV sphere; normals point inwards and poles carry no degenerate faces."""
    if stacks < 1 or sectors < 1:
        raise ValueError("a sphere needs at least one stack and one sector")
    _check_limits((stacks + 1) * (sectors + 1), 2 * sectors * (stacks - 1))

    vertices = []
    for i in range(stacks + 1):
        phi = math.pi * i / stacks
        for j in range(sectors + 1):
            theta = 2.0 * math.pi * j / sectors
            position = Vec3(
                math.sin(phi) * math.cos(theta),
                math.cos(phi),
                math.sin(phi) * math.sin(theta),
            )
            vertices.append(Vertex(position, Vec2(j / sectors, i / stacks), -position.normalized()))

    faces = []
    for i in range(stacks):
        for j in range(sectors):
            k1 = i * (sectors + 1) + j
            k2 = (i + 1) * (sectors + 1) + j
            if i != 0:
                faces.append(Face(v1=k1, v2=k1 + 1, v3=k2, material=material))
            if i != stacks - 1:
                faces.append(Face(v1=k1 + 1, v2=k2 + 1, v3=k2, material=material))

    return Mesh(label=name, vertices=vertices, faces=faces)


def create_plane(
    material: Optional[Material], name: str, subdivisions_x: int, subdivisions_y: int
) -> Mesh:
    """Unit square in the XZ plane centred on the origin, facing +Y."""
    if subdivisions_x < 1 or subdivisions_y < 1:
        raise ValueError("a plane needs at least one subdivision in each direction")
    _check_limits((subdivisions_x + 1) * (subdivisions_y + 1), subdivisions_x * subdivisions_y * 2)

    step_x = 1.0 / subdivisions_x
    step_y = 1.0 / subdivisions_y
    up = Vec3(0.0, 1.0, 0.0)
    vertices = [
        Vertex(
            Vec3(-0.5 + x * step_x, 0.0, -0.5 + y * step_y),
            Vec2(x / subdivisions_x, y / subdivisions_y),
            up,
        )
        for y in range(subdivisions_y + 1)
        for x in range(subdivisions_x + 1)
    ]

    faces = []
    for y in range(subdivisions_y):
        for x in range(subdivisions_x):
            top_left = y * (subdivisions_x + 1) + x
            top_right = top_left + 1
            bottom_left = (y + 1) * (subdivisions_x + 1) + x
            bottom_right = bottom_left + 1
            faces.append(Face(top_left, bottom_left, top_right, material))
            faces.append(Face(top_right, bottom_left, bottom_right, material))

    return Mesh(label=name, vertices=vertices, faces=faces)


def load_obj(
    filename: Union[str, Path], material: Optional[Material], name: Optional[str] = None
) -> Mesh:
    """Load a triangulated OBJ file holding only ``v`` and ``f`` records."""
    path = Path(filename)
    label = path.name if name is None else name
    vertices: list[Vertex] = []
    faces: list[Face] = []
    with path.open() as handle:
        for number, line in enumerate(handle, start=1):
            fields = line.split()
            if not fields:
                continue
            prefix, values = fields[0], fields[1:]
            try:
                if prefix == "v":
                    x, y, z = (float(v) for v in values[:3])
                    vertices.append(Vertex(position=Vec3(x, y, z)))
                elif prefix == "f":
                    a, b, c = (int(v) - 1 for v in values[:3])
                    faces.append(Face(a, b, c, material))
            except ValueError as exc:
                raise ValueError(f"{path}:{number}: malformed {prefix!r} record") from exc
    return create_mesh(faces, vertices, label)