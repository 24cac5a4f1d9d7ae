"""
Scene module.

Typed shape model and the lxml-based SVG reader that produces it.
"""

from svg_hpgl.scene.reader import (
    SceneError,
    normalize_color,
    parse_transform,
    read_svg,
    read_svg_string,
    scene_from_element,
)
from svg_hpgl.scene.shapes import Scene, Shape, ShapeKind

__all__ = [
    "SceneError",
    "normalize_color",
    "parse_transform",
    "read_svg",
    "read_svg_string",
    "scene_from_element",
    "Scene",
    "Shape",
    "ShapeKind",
]
