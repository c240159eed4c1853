"""Interactive viewer: renders a scene file into a window every frame."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from PIL import Image

from .geometry import Vec3
from .renderer import render
from .scene import FrameBuffer, Scene
from .scenefile import SceneCollection, parse_scene_file

logger = logging.getLogger(__name__)

DEFAULT_SCENE_FILE = "assets/scene.txt"
WINDOW_TITLE = "3D renderer"
FRAME_RATE_LIMIT = 144
DEPTH_DISPLAY_SCALE = 20.0

_BLACK = (0, 0, 0)


def _depth_gray(z: float) -> tuple[int, int, int]:
    value = z * DEPTH_DISPLAY_SCALE
    if value != value:  # NaN
        level = 0
    else:
        level = int(max(0.0, min(255.0, value)))
    return level, level, level


def frame_to_image(scene: Scene, target: FrameBuffer) -> Image.Image:
    """Convert the rendered buffers into an RGB image for display.

    Render mode 0 shows the tone-mapped colour buffer, mode 1 the scaled depth
    buffer; any other mode gives a black image.
    """
    image = Image.new("RGB", target.size, _BLACK)
    if scene.render_mode == 0:
        white = scene.maximum_color if scene.white_point == 0 else scene.white_point
        image.putdata([c.reinhardt_tonemap(white).to_rgb8() for c in target.colors])
    elif scene.render_mode == 1:
        image.putdata([_depth_gray(z) for z in target.depth])
    return image


def _orbit(scene: Scene) -> None:
    if scene.lights:
        light = scene.lights[0]
        r = light.rotation
        light.rotation = Vec3(r.x + 0.1, r.y, r.z)
    if scene.objects:
        obj = scene.objects[0]
        r = obj.rotation
        obj.rotation = Vec3(r.x, r.y + 0.01, r.z)


def _run_window(scene: Scene, target: FrameBuffer) -> None:
    import pygame

    pygame.init()
    try:
        screen = pygame.display.set_mode(target.size, pygame.RESIZABLE)
        pygame.display.set_caption(WINDOW_TITLE)
        clock = pygame.time.Clock()
        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    target.resize(event.w, event.h)
                    screen = pygame.display.set_mode(target.size, pygame.RESIZABLE)
            if not running:
                break

            if scene.orbit:
                _orbit(scene)

            render(scene, target)
            image = frame_to_image(scene, target)
            surface = pygame.image.fromstring(image.tobytes(), image.size, "RGB")
            screen.blit(surface, (0, 0))
            pygame.display.flip()
            clock.tick(FRAME_RATE_LIMIT)
    finally:
        pygame.quit()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Load a scene file and show its render scene until the window is closed."""
    parser = argparse.ArgumentParser(prog="softraster", description="Software 3D renderer.")
    parser.add_argument("scene_file", nargs="?", default=DEFAULT_SCENE_FILE)
    args = parser.parse_args(sys.argv[1:] if argv is None else list(argv))

    collection = SceneCollection()
    parse_scene_file(args.scene_file, collection)
    scene = collection.render_scene
    if scene is None:
        logger.error("The scene file selects no scene to render; use 'scene render <name>'")
        return 1

    _run_window(scene, FrameBuffer())
    return 0