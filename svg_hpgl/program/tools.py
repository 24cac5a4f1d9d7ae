"""Program inspection: bounding box and round-trip export to SVG.

These tools only scan an existing program; they never touch the
geometry pipeline.  They expect absolute coordinates (``PA``).

Usage::

    from svg_hpgl.program.tools import find_bounding_box, program_to_svg
    bbox = find_bounding_box(program)
    svg_text = program_to_svg(program, padding=0.05)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from lxml import etree

from svg_hpgl.program.instructions import (
    HPGLProgram,
    Instruction,
    SelectPen,
    is_motion,
    split_strokes,
)

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"

DEFAULT_PEN_COLORS: tuple[str, ...] = (
    "#000000",  # pen 0 / instructions before any SP
    "#000000",
    "#d62728",
    "#2ca02c",
    "#1f77b4",
    "#ff7f0e",
    "#9467bd",
    "#8c564b",
    "#e377c2",
)


# ---------------------------------------------------------------------------
# Bounding box
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned extent of all positioned moves, in plot units."""

    x_min: int = 0
    x_max: int = 0
    y_min: int = 0
    y_max: int = 0

    @property
    def width(self) -> int:
        return self.x_max - self.x_min

    @property
    def height(self) -> int:
        return self.y_max - self.y_min

    def as_dict(self) -> dict[str, int]:
        return {
            "xMin": self.x_min,
            "xMax": self.x_max,
            "yMin": self.y_min,
            "yMax": self.y_max,
            "width": self.width,
            "height": self.height,
        }


def find_bounding_box(program: Sequence[Instruction]) -> BoundingBox:
    """Extent of every ``PU``/``PD`` carrying exactly two coordinates.

    An empty program (or one without positioned moves) yields the
    degenerate zero box.
    """
    xs: list[int] = []
    ys: list[int] = []
    for ins in program:
        if is_motion(ins):
            x, y = ins.args
            xs.append(x)
            ys.append(y)
    if not xs:
        return BoundingBox()
    return BoundingBox(x_min=min(xs), x_max=max(xs), y_min=min(ys), y_max=max(ys))


# ---------------------------------------------------------------------------
# Round-trip export
# ---------------------------------------------------------------------------


def _split_by_pen(program: Sequence[Instruction]) -> dict[int, HPGLProgram]:
    blocks: dict[int, HPGLProgram] = {}
    pen = 0
    for ins in program:
        if isinstance(ins, SelectPen):
            pen = ins.pen
            continue
        blocks.setdefault(pen, []).append(ins)
    return blocks


def program_to_svg_paths(program: Sequence[Instruction]) -> dict[int, str]:
    """Re-express a program as one ``M``/``L`` path string per pen.

    Instructions before the first pen select belong to pen 0.  Pens that
    never draw are left out.

    Returns
    -------
    dict[int, str]
        Pen number -> path data, in first-use order.
    """
    paths: dict[int, str] = {}
    for pen, block in _split_by_pen(program).items():
        parts: list[str] = []
        for stroke in split_strokes(block):
            (x0, y0), rest = stroke[0], stroke[1:]
            parts.append(f"M{x0},{y0} " + " ".join(f"L{x},{y}" for x, y in rest))
        if parts:
            paths[pen] = " ".join(parts)
    return paths


def program_to_svg(
    program: Sequence[Instruction],
    view_box: Optional[Sequence[float]] = None,
    padding: float = 0.0,
    colors: Optional[Mapping[int, str]] = None,
    stroke_width: Optional[float] = None,
) -> str:
    """Render a program as a minimal SVG document for visual checks.

    Parameters
    ----------
    program : Sequence[Instruction]
        Program to render.
    view_box : Sequence[float], optional
        ``(x, y, width, height)``.  Default: the program's bounding box
        enlarged by ``padding * max(width, height)`` on each side.
    padding : float
        Relative padding used for the computed view box.
    colors : Mapping[int, str], optional
        Pen number -> stroke colour.  Missing pens use a fixed palette.
    stroke_width : float, optional
        Default: 1/1000 of the larger view box side (at least 1).

    Returns
    -------
    str
        UTF-8 SVG document with one ``<path>`` per pen.
    """
    if view_box is None:
        bbox = find_bounding_box(program)
        pad = padding * max(bbox.width, bbox.height)
        view_box = (
            bbox.x_min - pad,
            bbox.y_min - pad,
            bbox.width + 2 * pad,
            bbox.height + 2 * pad,
        )
    if len(view_box) != 4:
        raise ValueError(f"view_box needs 4 values, got {len(view_box)}")

    if stroke_width is None:
        stroke_width = max(1.0, max(view_box[2], view_box[3]) / 1000.0)

    root = etree.Element(f"{{{SVG_NS}}}svg", nsmap={None: SVG_NS})
    root.set("viewBox", " ".join(f"{float(v):g}" for v in view_box))
    root.set("width", f"{float(view_box[2]):g}")
    root.set("height", f"{float(view_box[3]):g}")

    paths = program_to_svg_paths(program)
    for pen, d in paths.items():
        color = (colors or {}).get(pen) or DEFAULT_PEN_COLORS[pen % len(DEFAULT_PEN_COLORS)]
        path = etree.SubElement(root, f"{{{SVG_NS}}}path")
        path.set("id", f"pen-{pen}")
        path.set("d", d)
        path.set("fill", "none")
        path.set("stroke", color)
        path.set("stroke-width", f"{stroke_width:g}")

    logger.debug("Exported %d pen path(s)", len(paths))
    return etree.tostring(
        root, pretty_print=True, xml_declaration=True, encoding="utf-8",
    ).decode("utf-8")
