# softraster

softraster is a small 3D renderer that runs entirely on the CPU. Every pixel
is computed in Python. It offers:

- perspective projection with near and far clipping, and back-face culling;
- perspective-correct interpolation of depth, normals, world positions and UVs;
- Phong shading with directional and point lights, ambient light, specular
  highlights, subsurface scattering for double-sided materials, emissive
  colours and textures, normal maps and transparent materials;
- an "earth" material that blends terrain, ocean and cloud layers;
- mipmapped textures with nearest, bilinear and trilinear filtering;
- exponential distance fog and Reinhard tone mapping;
- procedural spheres and planes, triangulated OBJ meshes and custom meshes;
- a plain-text scene format that can import other scene files.

## Installation

```
pip install .
```

## Running

```
softraster path/to/scene.txt
```

If you give no path, `assets/scene.txt` is used. The file must select a scene
with `scene render <name>`; otherwise the command logs an error and exits with
status 1. A resizable window (made with pygame) opens and shows that scene,
rendered again every frame until the window is closed. With `set renderMode 0`
(the default) the window shows the tone-mapped colour buffer; with
`set renderMode 1` it shows the depth buffer as grey levels.

## Scene files

A scene file is a list of whitespace-separated words. Anything between two
`#` words is a comment. Angles are given in degrees.

```
# a lit sphere #
scene new main
scene edit main
scene render main

cam pos 0 0 -3
cam rot 0 0 0
nearFar 0.1 100
fov 90
ambientLight 1 1 1 0.1
set whitePoint 1

new light directional 45 0 0 1 1 1 1
new light point 5 5 -5 1 0.8 0.6 20

new material red phong
  diffuseColor 1 0 0 1
  specularColor 1 1 1 0.3
end

new mesh ball sphere 16 32 red
new object ball 0 0 0 1 1 1 0 0 0
```

Commands:

- `import <file>` reads another scene file. The path is relative to the
  current file, and the imported file starts out editing the current scene.
- `scene new|edit|render <name>` creates a scene, picks the scene that later
  commands change, or picks the scene to display.
- `cam pos x y z` and `cam rot x y z` set the camera position and rotation.
- `nearFar near far` and `fov degrees` set the projection.
- `set renderMode|backFaceCulling|reverseAllFaces|fullBright|wireFrame <int>`
  and `set whitePoint <number>` change render settings. A white point of 0
  tone-maps against the brightest colour shaded so far.
- `fog r g b density` and `ambientLight r g b intensity` set the fog and the
  ambient light.
- `new light directional rx ry rz r g b intensity` adds a directional light.
  `new light point x y z r g b intensity` adds a point light whose intensity
  falls off with the square of the distance.
- `new material <name> phong ... end` takes the keys `diffuseColor`,
  `specularColor`, `tintColor`, `emissiveColor` (four numbers each),
  `diffuseTexture`, `specularTexture`, `tintTexture`, `emissiveTexture`
  (an image file each), `normalMap <file> <strength> <steps|-1>`,
  `transparent` and `doubleSided`.
- `new material <name> earth ... end` takes the keys `terrainDiffuseColor`,
  `cityLightsColor`, `oceanDiffuseColor`, `oceanSpecularColor`,
  `cloudDiffuseColor`, `terrainDiffuseTexture`, `oceanMask`,
  `cityLightsTexture`, `cloudTexture` and `normalMap`. The ocean mask and the
  cloud texture are read from the image's alpha channel; an earth material
  needs both, and a terrain diffuse texture, before it can be drawn.
- `new mesh <name> obj <material> <file>`,
  `new mesh <name> sphere <stacks> <sectors> <material>`,
  `new mesh <name> plane <subdivX> <subdivY> <material>`, or
  `new mesh <name> custom ... end` with entries `m <material>`,
  `v <index> x y z u v` and `f a b c`.
- `new object <mesh> px py pz sx sy sz rx ry rz` places a mesh in the scene.

Image paths are relative to the scene file; the OBJ file path of
`new mesh ... obj` is used as given, relative to the working directory. OBJ
files may hold only `v` and `f` records and must be triangulated. Texture
sizes must be powers of two so that mipmaps can be generated. Unknown keys and
names that cannot be found are logged through `logging`; malformed numbers or
a file that ends too early raise `ValueError`.

## Using it as a library

```python
from softraster.scene import FrameBuffer
from softraster.scenefile import SceneCollection, parse_scene_file
from softraster.renderer import render
from softraster.app import frame_to_image

collection = SceneCollection()
parse_scene_file("assets/scene.txt", collection)
scene = collection.render_scene

target = FrameBuffer(320, 240)
render(scene, target)
frame_to_image(scene, target).save("frame.png")
```

The building blocks are also available on their own:

- `softraster.mesh`: `create_sphere`, `create_plane`, `create_mesh`, `load_obj`
- `softraster.textures`: `load_color_texture`, `load_vector_texture`,
  `load_float_texture`, `texture_sample`, `FilterMode`
- `softraster.materials`: `PhongMaterial`, `EarthMaterial`, `reflect`
- `softraster.projection`: `perspective_matrix`, `perspective_project`
- `softraster.raster`: `Triangle`, `draw_triangle`, `draw_line`, `plot_vertex`
- `softraster.renderer`: `render`, `apply_fog`
- `softraster.matrix`: flat row-major matrix helpers and `rotate`
- `softraster.geometry`: `Vec2` and `Vec3`
- `softraster.color.Color`: arithmetic on colours, luminance and tone mapping

## What it does not do

- The viewer has no panel for editing a scene while it runs. Texture
  filtering (`Scene.texture_filtering_mode`) and orbiting (`Scene.orbit`)
  cannot be set from a scene file; set them on the `Scene` object in code.
- `reverseAllFaces` is stored on the scene but does not change rendering.
- A normal map's parallax steps and displacement map are loaded and stored,
  but shading does not use them.