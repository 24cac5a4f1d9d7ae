"""Effective coordinate space of a shape: viewports, local transforms, user options.

A shape's *ancestry* is the ordered list of frames between its local
coordinates and the outermost document, nearest first:

- :class:`TransformFrame` -- a graphics element's consolidated
  ``transform`` attribute (the shape's own, then each ``<g>``).
- :class:`ViewportFrame` -- an ``<svg>`` boundary mapping its viewBox
  into its position rectangle under a ``preserveAspectRatio`` policy.

:func:`document_matrix` folds the ancestry so that the nearest frame is
applied to the point first.  :func:`user_matrix` builds the caller's
plot-space adjustment in the fixed order translate -> mirror -> rotate
-> scale (builder order; see :mod:`svg_hpgl.geometry.matrix`), and
:func:`resolve_transform` pre-multiplies it onto the document matrix.
Rotation is about the plot-space origin, never about the drawing's
centre.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence, Union

import numpy as np

from svg_hpgl.diagnostics import DiagnosticKind, Diagnostics
from svg_hpgl.geometry.matrix import (
    IDENTITY,
    AffineMatrix,
    apply_points,
    compose,
    flip_x,
    flip_y,
    rotate,
    round_half_up,
    scale,
    translate,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Viewport description
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


class MeetOrSlice(str, Enum):
    """Uniform-scale policy: *meet* fits (min scale), *slice* fills (max)."""

    MEET = "meet"
    SLICE = "slice"


_ALIGN_RE = re.compile(r"^x(Min|Mid|Max)Y(Min|Mid|Max)$")


@dataclass(frozen=True, slots=True)
class Align:
    """``preserveAspectRatio`` alignment.

    Parameters
    ----------
    x, y : ``"min"`` | ``"mid"`` | ``"max"`` | None
        Per-axis alignment.  Both ``None`` means ``none``: non-uniform
        scaling, no alignment.
    """

    x: str | None = "mid"
    y: str | None = "mid"

    def __post_init__(self) -> None:
        if (self.x is None) != (self.y is None):
            raise ValueError("Align axes must both be set or both be None")
        for axis in (self.x, self.y):
            if axis not in (None, "min", "mid", "max"):
                raise ValueError(
                    f"Align axis must be 'min', 'mid' or 'max', got {axis!r}"
                )

    @property
    def is_none(self) -> bool:
        return self.x is None

    @classmethod
    def none(cls) -> Align:
        return cls(x=None, y=None)

    @classmethod
    def parse(cls, text: str) -> Align:
        """Parse ``"none"`` or ``"x{Min,Mid,Max}Y{Min,Mid,Max}"``.

        Raises
        ------
        ValueError
            On any other keyword.
        """
        text = text.strip()
        if text == "none":
            return cls.none()
        m = _ALIGN_RE.match(text)
        if m is None:
            raise ValueError(f"Invalid preserveAspectRatio alignment: {text!r}")
        return cls(x=m.group(1).lower(), y=m.group(2).lower())


@dataclass(frozen=True, slots=True)
class ViewportFrame:
    """An ``<svg>`` boundary.

    Parameters
    ----------
    position : Rect
        Viewport rectangle in the parent's coordinates.
    view_box : Rect | None
        Logical viewBox; ``None`` (or zero-sized axes) falls back to the
        position size at the origin.
    align : Align
        Alignment, default ``xMidYMid``.
    meet_or_slice : MeetOrSlice
        Uniform-scale policy, default ``meet``.
    """

    position: Rect
    view_box: Rect | None = None
    align: Align = Align()
    meet_or_slice: MeetOrSlice = MeetOrSlice.MEET


@dataclass(frozen=True, slots=True)
class TransformFrame:
    """A graphics element's consolidated ``transform`` attribute."""

    matrix: AffineMatrix


Frame = Union[TransformFrame, ViewportFrame]


# ---------------------------------------------------------------------------
# Matrices
# ---------------------------------------------------------------------------


def _axis_scale(position_len: float, view_len: float) -> float:
    if position_len > 0 and view_len > 0:
        return position_len / view_len
    return 1.0


def _align_offset(axis: str | None, free_space: float) -> float:
    if axis == "mid":
        return free_space / 2.0
    if axis == "max":
        return free_space
    return 0.0


def viewport_matrix(frame: ViewportFrame) -> AffineMatrix:
    """Matrix mapping viewBox coordinates into the viewport rectangle."""
    pos = frame.position
    vb = frame.view_box
    view = Rect(
        x=vb.x if vb is not None else 0.0,
        y=vb.y if vb is not None else 0.0,
        width=vb.width if vb is not None and vb.width else pos.width,
        height=vb.height if vb is not None and vb.height else pos.height,
    )

    sx = _axis_scale(pos.width, view.width)
    sy = _axis_scale(pos.height, view.height)

    dx = 0.0
    dy = 0.0
    if not frame.align.is_none:
        if frame.meet_or_slice is MeetOrSlice.SLICE:
            sx = sy = max(sx, sy)
        else:
            sx = sy = min(sx, sy)
        dx = _align_offset(frame.align.x, pos.width - view.width * sx)
        dy = _align_offset(frame.align.y, pos.height - view.height * sy)

    return AffineMatrix(
        a=sx,
        d=sy,
        e=pos.x + dx - view.x * sx,
        f=pos.y + dy - view.y * sy,
    )


def frame_matrix(frame: Frame) -> AffineMatrix:
    if isinstance(frame, ViewportFrame):
        return viewport_matrix(frame)
    return frame.matrix


def document_matrix(ancestry: Sequence[Frame]) -> AffineMatrix:
    """Fold an ancestry (nearest first) into one matrix.

    Each further-out frame is pre-multiplied, so the nearest frame is
    applied to a point first.
    """
    ctm = IDENTITY
    for frame in ancestry:
        ctm = compose(frame_matrix(frame), ctm)
    return ctm


def user_matrix(
    *,
    offset_x: float = 0.0,
    offset_y: float = 0.0,
    mirror_x: bool = False,
    mirror_y: bool = False,
    rotation: float = 0.0,
    scale_factor: float = 1.0,
) -> AffineMatrix:
    """Caller-supplied plot-space adjustment.

    Built as translate -> mirror(s) -> rotate -> uniform scale in builder
    order, so a point is scaled first and offset last.
    """
    m = translate(IDENTITY, offset_x, offset_y)
    if mirror_x:
        m = flip_x(m)
    if mirror_y:
        m = flip_y(m)
    m = rotate(m, rotation)
    return scale(m, scale_factor)


# ---------------------------------------------------------------------------
# Plot transform
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlotTransform:
    """Maps local shape coordinates to integer plot coordinates.

    Rounding (half toward +inf) happens only here, after the complete
    matrix has been applied.
    """

    matrix: AffineMatrix = IDENTITY

    def __call__(self, x: float, y: float) -> tuple[int, int]:
        px, py = self.matrix(x, y)
        return (int(np.floor(px + 0.5)), int(np.floor(py + 0.5)))

    def map_points(self, points: np.ndarray) -> np.ndarray:
        """Map an ``(N, 2)`` float array to an ``(N, 2)`` int array."""
        return round_half_up(apply_points(self.matrix, points))


def resolve_transform(
    ancestry: Sequence[Frame],
    options: Any = None,
    diagnostics: Diagnostics | None = None,
    element_id: str | None = None,
) -> PlotTransform:
    """Build the local-to-plot transform for one shape.

    Parameters
    ----------
    ancestry : Sequence[Frame]
        Frames from the shape outwards, ending at the outermost viewport.
    options : ConversionOptions, optional
        Any object with ``offset_x, offset_y, mirror_x, mirror_y,
        rotation, scale`` attributes; ``None`` means no adjustment.
    diagnostics : Diagnostics, optional
        Receives a ``MISSING_VIEWPORT`` warning for detached shapes.
    element_id : str, optional
        Shape id used in the warning.

    Returns
    -------
    PlotTransform
        ``user · document``, or the identity (rounding only) when the
        ancestry contains no viewport.
    """
    if not any(isinstance(f, ViewportFrame) for f in ancestry):
        (diagnostics if diagnostics is not None else Diagnostics()).warn(
            DiagnosticKind.MISSING_VIEWPORT,
            "no owning <svg> viewport; using identity transform",
            element_id,
        )
        return PlotTransform(IDENTITY)

    doc = document_matrix(ancestry)
    if options is None:
        return PlotTransform(doc)

    user = user_matrix(
        offset_x=options.offset_x,
        offset_y=options.offset_y,
        mirror_x=options.mirror_x,
        mirror_y=options.mirror_y,
        rotation=options.rotation,
        scale_factor=options.scale,
    )
    return PlotTransform(compose(user, doc))
