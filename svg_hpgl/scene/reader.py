"""SVG document -> :class:`Scene`.

Parses a document with lxml and walks it once, in document order,
collecting the drawable primitives (``line, polyline, polygon, circle,
ellipse, rect, path``) together with everything the geometry pipeline
needs to place them:

- the resolved stroke colour, normalized to ``rgb(r, g, b)``;
- the ancestry of frames, nearest first: the shape's own ``transform``,
  each enclosing ``<g>``'s ``transform`` and every ``<svg>`` viewport.

Content of non-rendered containers (``defs``, ``clipPath``, ``mask`` ...)
and anything hidden with ``display:none`` is skipped.  ``<use>`` and
``<text>`` are not expanded; each occurrence is reported as an
``UNSUPPORTED_ELEMENT`` diagnostic.

Lengths are read as plain numbers: unit suffixes are ignored and
percentages are treated as absent.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import IO, Union

from lxml import etree

from svg_hpgl.diagnostics import DiagnosticKind, Diagnostics
from svg_hpgl.geometry.matrix import (
    IDENTITY,
    AffineMatrix,
    compose,
    rotation,
    scaling,
    skewing_x,
    skewing_y,
    translation,
)
from svg_hpgl.geometry.viewport import (
    Align,
    Frame,
    MeetOrSlice,
    Rect,
    TransformFrame,
    ViewportFrame,
)
from svg_hpgl.scene.shapes import Scene, Shape, ShapeKind

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"

SVGSource = Union[str, os.PathLike, IO[bytes]]


class SceneError(ValueError):
    """Raised when an SVG document cannot be parsed into a scene."""

    pass


_SKIPPED_CONTAINERS = frozenset({
    "defs", "clipPath", "mask", "marker", "pattern", "symbol",
    "title", "desc", "metadata", "style", "script",
})
_GROUPS = frozenset({"g", "a", "switch"})
_UNSUPPORTED = frozenset({"use", "text"})

_GEOMETRY_ATTRS: dict[ShapeKind, tuple[str, ...]] = {
    ShapeKind.LINE: ("x1", "y1", "x2", "y2"),
    ShapeKind.CIRCLE: ("cx", "cy", "r"),
    ShapeKind.ELLIPSE: ("cx", "cy", "rx", "ry"),
    ShapeKind.RECT: ("x", "y", "width", "height", "rx", "ry"),
    ShapeKind.POLYLINE: (),
    ShapeKind.POLYGON: (),
    ShapeKind.PATH: (),
}

_RE_FLOAT = re.compile(r"[-+]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][-+]?[0-9]+)?")
_RE_LEADING_FLOAT = re.compile(r"^\s*(" + _RE_FLOAT.pattern + r")")
_TRANSFORM_RE = re.compile(
    r"(matrix|translate|scale|rotate|skewX|skewY)\s*\(([^)]*)\)\s*,?",
)
_HEX_RE = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$")
_RGB_RE = re.compile(r"^rgb\(\s*([^,\s]+)\s*[,\s]\s*([^,\s]+)\s*[,\s]\s*([^,\s)]+)\s*\)$")

# CSS basic colour keywords
NAMED_COLORS: dict[str, tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "silver": (192, 192, 192),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "white": (255, 255, 255),
    "maroon": (128, 0, 0),
    "red": (255, 0, 0),
    "purple": (128, 0, 128),
    "fuchsia": (255, 0, 255),
    "magenta": (255, 0, 255),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "olive": (128, 128, 0),
    "yellow": (255, 255, 0),
    "navy": (0, 0, 128),
    "blue": (0, 0, 255),
    "teal": (0, 128, 128),
    "aqua": (0, 255, 255),
    "cyan": (0, 255, 255),
    "orange": (255, 165, 0),
}


# ---------------------------------------------------------------------------
# Attribute helpers
# ---------------------------------------------------------------------------


def local_name(element) -> str | None:
    """Tag without namespace; ``None`` for comments, PIs and foreign elements."""
    tag = element.tag
    if not isinstance(tag, str):
        return None
    if tag.startswith("{"):
        ns, _, name = tag[1:].partition("}")
        return name if ns == SVG_NS else None
    return tag


def parse_length(text: str | None) -> float | None:
    """Leading number of an attribute value, unit suffix ignored.

    Percentages and values without a leading number give ``None``.
    """
    if text is None:
        return None
    text = text.strip()
    if text.endswith("%"):
        return None
    m = _RE_LEADING_FLOAT.match(text)
    if m is None:
        return None
    return float(m.group(1))


def parse_numbers(text: str | None) -> list[float]:
    if not text:
        return []
    return [float(n) for n in _RE_FLOAT.findall(text)]


def inline_style(text: str | None) -> dict[str, str]:
    """``"a: 1; b: 2"`` -> ``{"a": "1", "b": "2"}``."""
    styles: dict[str, str] = {}
    if not text:
        return styles
    for declaration in text.split(";"):
        name, sep, value = declaration.partition(":")
        if sep:
            styles[name.strip()] = value.strip()
    return styles


def presentation_value(element, name: str) -> str | None:
    """Value of a presentation property; ``style`` beats the attribute."""
    value = inline_style(element.get("style")).get(name)
    if value is None:
        value = element.get(name)
    if value is None:
        return None
    value = value.replace("!important", "").strip()
    return value or None


def _channel(text: str) -> int:
    if text.endswith("%"):
        value = float(text[:-1]) * 255.0 / 100.0
    else:
        value = float(text)
    return max(0, min(255, int(round(value))))


def normalize_color(value: str) -> str:
    """Unify colour syntax to ``rgb(r, g, b)``.

    Hex (``#rgb``, ``#rrggbb``), ``rgb()`` with any spacing and the CSS
    basic keywords are converted; anything else is returned lower-cased.
    """
    text = value.strip().lower()
    rgb: tuple[int, int, int] | None = None

    m = _HEX_RE.match(text)
    if m is not None:
        digits = m.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        rgb = (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
    elif text in NAMED_COLORS:
        rgb = NAMED_COLORS[text]
    else:
        m = _RGB_RE.match(text)
        if m is not None:
            try:
                rgb = (_channel(m.group(1)), _channel(m.group(2)), _channel(m.group(3)))
            except ValueError:
                rgb = None

    if rgb is None:
        return text
    return f"rgb({rgb[0]}, {rgb[1]}, {rgb[2]})"


def parse_transform(text: str | None) -> AffineMatrix | None:
    """Parse an SVG ``transform`` attribute into one matrix.

    The listed transforms are composed left to right, so the rightmost
    one is applied to a point first.  Functions with the wrong number of
    arguments are skipped with a warning.

    Returns
    -------
    AffineMatrix | None
        ``None`` when the attribute is empty or contains no transform.
    """
    if not text:
        return None
    result: AffineMatrix | None = None
    for name, raw_args in _TRANSFORM_RE.findall(text.strip()):
        values = parse_numbers(raw_args)
        n = len(values)
        matrix: AffineMatrix | None = None
        if name == "matrix" and n == 6:
            matrix = AffineMatrix(*values)
        elif name == "translate" and n in (1, 2):
            matrix = translation(values[0], values[1] if n > 1 else 0.0)
        elif name == "scale" and n in (1, 2):
            matrix = scaling(values[0], values[1] if n > 1 else None)
        elif name == "rotate" and n in (1, 3):
            matrix = rotation(values[0], *(values[1:3] if n == 3 else ()))
        elif name == "skewX" and n == 1:
            matrix = skewing_x(values[0])
        elif name == "skewY" and n == 1:
            matrix = skewing_y(values[0])

        if matrix is None:
            logger.warning("Ignoring malformed transform %s(%s)", name, raw_args.strip())
            continue
        result = matrix if result is None else compose(result, matrix)
    return result


# ---------------------------------------------------------------------------
# Viewports
# ---------------------------------------------------------------------------


def parse_view_box(text: str | None) -> Rect | None:
    if not text:
        return None
    values = parse_numbers(text)
    if len(values) != 4:
        logger.warning("Ignoring malformed viewBox %r", text)
        return None
    x, y, width, height = values
    if width < 0 or height < 0:
        logger.warning("Ignoring viewBox with negative size %r", text)
        return None
    return Rect(x, y, width, height)


def parse_preserve_aspect_ratio(text: str | None) -> tuple[Align, MeetOrSlice]:
    """Parse ``preserveAspectRatio``; defaults to ``xMidYMid meet``."""
    align = Align()
    meet_or_slice = MeetOrSlice.MEET
    if not text:
        return align, meet_or_slice

    tokens = text.split()
    if tokens and tokens[0] == "defer":
        tokens = tokens[1:]
    if tokens:
        try:
            align = Align.parse(tokens[0])
        except ValueError as exc:
            logger.warning("%s; using xMidYMid", exc)
    if len(tokens) > 1:
        try:
            meet_or_slice = MeetOrSlice(tokens[1])
        except ValueError:
            logger.warning("Invalid meetOrSlice %r; using meet", tokens[1])
    return align, meet_or_slice


def viewport_frame(element, is_root: bool) -> ViewportFrame:
    """Build the :class:`ViewportFrame` of an ``<svg>`` element.

    A root viewport sits at (0, 0).  Missing width/height fall back to
    the viewBox size, then to 0 (identity scale on that axis).
    """
    view_box = parse_view_box(element.get("viewBox"))

    x = 0.0 if is_root else (parse_length(element.get("x")) or 0.0)
    y = 0.0 if is_root else (parse_length(element.get("y")) or 0.0)
    width = parse_length(element.get("width"))
    height = parse_length(element.get("height"))
    if width is None:
        width = view_box.width if view_box is not None else 0.0
    if height is None:
        height = view_box.height if view_box is not None else 0.0

    align, meet_or_slice = parse_preserve_aspect_ratio(element.get("preserveAspectRatio"))
    return ViewportFrame(
        position=Rect(x, y, width, height),
        view_box=view_box,
        align=align,
        meet_or_slice=meet_or_slice,
    )


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------


class _SceneWalker:
    """Depth-first, document-ordered collection of shapes."""

    def __init__(self, diagnostics: Diagnostics) -> None:
        self._diagnostics = diagnostics
        self.shapes: list[Shape] = []

    def walk(
        self,
        element,
        ancestry: tuple[Frame, ...],
        stroke: str | None,
        is_root: bool = False,
    ) -> None:
        name = local_name(element)
        if name is None or name in _SKIPPED_CONTAINERS:
            return
        if presentation_value(element, "display") == "none":
            return

        stroke = self._resolve_stroke(element, stroke)
        element_id = element.get("id")

        if name in _UNSUPPORTED:
            self._diagnostics.warn(
                DiagnosticKind.UNSUPPORTED_ELEMENT,
                f"<{name}> is not expanded; element skipped",
                element_id,
            )
            return

        if name == "svg":
            frame = viewport_frame(element, is_root)
            self._walk_children(element, (frame,) + ancestry, stroke)
            return

        own = parse_transform(element.get("transform"))
        if own is not None and not own.is_identity():
            ancestry = (TransformFrame(own),) + ancestry

        if name in _GROUPS:
            self._walk_children(element, ancestry, stroke)
        elif name in _GEOMETRY_ATTRS:
            self.shapes.append(self._shape(element, ShapeKind(name), ancestry, stroke))
        else:
            logger.debug("Skipping <%s>", name)

    def _walk_children(self, element, ancestry: tuple[Frame, ...], stroke: str | None) -> None:
        for child in element:
            self.walk(child, ancestry, stroke)

    @staticmethod
    def _resolve_stroke(element, inherited: str | None) -> str | None:
        value = presentation_value(element, "stroke")
        if value is None or value == "inherit":
            return inherited
        if value == "none":
            return None
        return normalize_color(value)

    def _shape(
        self,
        element,
        kind: ShapeKind,
        ancestry: tuple[Frame, ...],
        stroke: str | None,
    ) -> Shape:
        element_id = element.get("id")
        attrs: dict[str, float] = {}
        for attr_name in _GEOMETRY_ATTRS[kind]:
            value = parse_length(element.get(attr_name))
            if value is not None:
                attrs[attr_name] = value

        points: tuple[tuple[float, float], ...] = ()
        if kind in (ShapeKind.POLYLINE, ShapeKind.POLYGON):
            values = parse_numbers(element.get("points"))
            if len(values) % 2:
                self._diagnostics.warn(
                    DiagnosticKind.MALFORMED_NUMBER,
                    f"odd number of coordinates in points; dropping {values[-1]:g}",
                    element_id,
                )
                values = values[:-1]
            points = tuple(zip(values[0::2], values[1::2]))

        d = element.get("d") if kind is ShapeKind.PATH else None

        return Shape(
            kind=kind,
            attrs=attrs,
            stroke=stroke,
            ancestry=ancestry,
            points=points,
            d=d,
            element_id=element_id,
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def scene_from_element(root, diagnostics: Diagnostics | None = None) -> Scene:
    """Collect the scene below an already-parsed ``<svg>`` root element.

    Raises
    ------
    SceneError
        If *root* is not an SVG ``<svg>`` element.
    """
    if local_name(root) != "svg":
        raise SceneError(f"Root element is not <svg>: {root.tag!r}")
    walker = _SceneWalker(diagnostics if diagnostics is not None else Diagnostics())
    walker.walk(root, (), None, is_root=True)
    logger.info("Collected %d shapes", len(walker.shapes))
    return Scene(shapes=tuple(walker.shapes))


def _parser() -> etree.XMLParser:
    return etree.XMLParser(remove_comments=True, resolve_entities=False, no_network=True)


def read_svg(source: SVGSource, diagnostics: Diagnostics | None = None) -> Scene:
    """Read an SVG file (path or binary file object) into a :class:`Scene`.

    Raises
    ------
    FileNotFoundError
        If *source* is a path that does not exist.
    SceneError
        If the document is not well-formed XML or its root is not ``<svg>``.
    """
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"SVG file not found: {path}")
        source = str(path)
        logger.debug("Reading %s", path)
    try:
        doc = etree.parse(source, parser=_parser())
    except etree.XMLSyntaxError as exc:
        raise SceneError(f"Cannot parse SVG document: {exc}") from exc
    return scene_from_element(doc.getroot(), diagnostics)


def read_svg_string(text: str | bytes, diagnostics: Diagnostics | None = None) -> Scene:
    """Parse SVG markup into a :class:`Scene`.

    Raises
    ------
    SceneError
        If the markup is not well-formed XML or its root is not ``<svg>``.
    """
    data = text.encode("utf-8") if isinstance(text, str) else text
    try:
        root = etree.fromstring(data, parser=_parser())
    except etree.XMLSyntaxError as exc:
        raise SceneError(f"Cannot parse SVG document: {exc}") from exc
    return scene_from_element(root, diagnostics)
