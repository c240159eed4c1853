"""A CPU software rasterizer with Phong shading, mipmapped textures, a text scene format and a pygame viewer."""

__version__ = "0.1.0"