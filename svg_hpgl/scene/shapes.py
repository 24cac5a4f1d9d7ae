"""Typed scene model consumed by the program builder.

A :class:`Scene` is a read-only, document-ordered tuple of
:class:`Shape` records.  Each shape carries a closed :class:`ShapeKind`
tag, its numeric geometry attributes, its resolved stroke colour and
the ancestry of frames that defines its coordinate space (see
:mod:`svg_hpgl.geometry.viewport`).  Nothing in here knows about XML.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from svg_hpgl.diagnostics import DiagnosticKind, Diagnostics
from svg_hpgl.geometry.viewport import Frame


class ShapeKind(str, Enum):
    LINE = "line"
    POLYLINE = "polyline"
    POLYGON = "polygon"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    RECT = "rect"
    PATH = "path"


SHAPE_TAGS = frozenset(kind.value for kind in ShapeKind)


@dataclass(frozen=True)
class Shape:
    """One stroked primitive.

    Parameters
    ----------
    kind : ShapeKind
        Primitive type.
    attrs : Mapping[str, float]
        Geometry attributes that were present and numeric (``x1``,
        ``cx``, ``rx``, ``width`` ...).  Absent keys read as 0 through
        :meth:`attr`.
    stroke : str | None
        Normalized stroke colour, ``None`` when unstroked.
    ancestry : tuple[Frame, ...]
        Frames from the shape outwards (own transform first).
    points : tuple[tuple[float, float], ...]
        Vertices of a polyline/polygon.
    d : str | None
        Path data of a ``path``.
    element_id : str | None
        ``id`` attribute, for diagnostics.
    """

    kind: ShapeKind
    attrs: Mapping[str, float] = field(default_factory=dict)
    stroke: str | None = None
    ancestry: tuple[Frame, ...] = ()
    points: tuple[tuple[float, float], ...] = ()
    d: str | None = None
    element_id: str | None = None

    def attr(self, name: str, diagnostics: Diagnostics | None = None) -> float:
        """Geometry attribute *name*, or 0 with a ``MISSING_ATTRIBUTE`` warning."""
        value = self.attrs.get(name)
        if value is not None:
            return value
        (diagnostics if diagnostics is not None else Diagnostics()).warn(
            DiagnosticKind.MISSING_ATTRIBUTE,
            f"<{self.kind.value}> has no '{name}' attribute; using 0",
            self.element_id,
        )
        return 0.0

    def optional_attr(self, name: str) -> float | None:
        return self.attrs.get(name)


@dataclass(frozen=True)
class Scene:
    """All shapes of one document, in document order."""

    shapes: tuple[Shape, ...] = ()

    def __iter__(self):
        return iter(self.shapes)

    def __len__(self) -> int:
        return len(self.shapes)

    def stroked_shapes(self) -> dict[str, list[Shape]]:
        """Map stroke colour -> shapes, keyed in first-seen order.

        Unstroked shapes are left out.
        """
        groups: dict[str, list[Shape]] = {}
        for shape in self.shapes:
            if not shape.stroke:
                continue
            groups.setdefault(shape.stroke, []).append(shape)
        return groups

    def stroke_colors(self) -> list[str]:
        return list(self.stroked_shapes())
