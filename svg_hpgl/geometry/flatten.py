"""Curve flattening: Béziers, ellipses and elliptical arcs to polylines.

Provides:
    - Shared segment-count policy and Ramanujan ellipse perimeter
    - Fixed-step samplers (line, quadratic, cubic) for an explicit count
    - Adaptive cubic/quadratic flattening by recursive subdivision
    - SVG endpoint-to-center arc conversion and arc sampling

Every routine is stateless per curve: implied control points of smooth
path commands are resolved before calling in (see
:mod:`svg_hpgl.path.segments`).  Polylines are ``(N, 2)`` float arrays
whose first row is the curve start and last row the curve end.

Resolution
----------
``resolution`` is segments per unit of curve length in the document's
local coordinate space.  For adaptive Bézier flattening the chord
tolerance is ``1 / resolution``; a resolution of zero or less keeps just
the two end points.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

Point = tuple[float, float]

MIN_SEGMENTS = 2
"""No curve is ever flattened into fewer segments than this."""

_EPS = 1e-12


# ---------------------------------------------------------------------------
# Segment counts and perimeters
# ---------------------------------------------------------------------------


def segment_count(resolution: float, length: float) -> int:
    """Segments for a curve of *length* at *resolution* segments/unit.

    Returns ``max(2, round(resolution * length))``; non-finite or
    negative products also give 2.
    """
    n = resolution * length
    if not math.isfinite(n) or n < MIN_SEGMENTS:
        return MIN_SEGMENTS
    return max(MIN_SEGMENTS, int(math.floor(n + 0.5)))


def ellipse_perimeter(rx: float, ry: float) -> float:
    """Ramanujan's second approximation of an ellipse's circumference."""
    rx = abs(rx)
    ry = abs(ry)
    total = rx + ry
    if total == 0.0:
        return 0.0
    h = (rx - ry) ** 2 / total ** 2
    return math.pi * total * (1.0 + 3.0 * h / (10.0 + math.sqrt(4.0 - 3.0 * h)))


def ellipse_points(
    cx: float,
    cy: float,
    rx: float,
    ry: float,
    start_angle: float,
    end_angle: float,
    segments: int,
) -> np.ndarray:
    """Sample an axis-aligned ellipse between two angles (radians).

    Returns ``segments + 1`` points, both ends inclusive.  *segments* is
    rounded and clamped to at least 2.
    """
    segments = max(MIN_SEGMENTS, int(round(segments)))
    t = np.linspace(start_angle, end_angle, segments + 1)
    return np.column_stack([cx + rx * np.cos(t), cy + ry * np.sin(t)])


# ---------------------------------------------------------------------------
# Fixed-step samplers
# ---------------------------------------------------------------------------


def sample_line(p0: Point, p1: Point, segments: int) -> np.ndarray:
    t = np.linspace(0.0, 1.0, max(1, segments) + 1)[:, None]
    a = np.asarray(p0, dtype=float)
    b = np.asarray(p1, dtype=float)
    return a + (b - a) * t


def sample_quadratic(p0: Point, p1: Point, p2: Point, segments: int) -> np.ndarray:
    """Evaluate a quadratic Bézier at ``segments + 1`` uniform parameters."""
    t = np.linspace(0.0, 1.0, max(1, segments) + 1)[:, None]
    a, b, c = (np.asarray(p, dtype=float) for p in (p0, p1, p2))
    mt = 1.0 - t
    return mt ** 2 * a + 2.0 * mt * t * b + t ** 2 * c


def sample_cubic(
    p0: Point, p1: Point, p2: Point, p3: Point, segments: int,
) -> np.ndarray:
    """Evaluate a cubic Bézier at ``segments + 1`` uniform parameters.

    Notes
    -----
    B(t) = (1-t)³·p0 + 3(1-t)²t·p1 + 3(1-t)t²·p2 + t³·p3
    """
    t = np.linspace(0.0, 1.0, max(1, segments) + 1)[:, None]
    a, b, c, d = (np.asarray(p, dtype=float) for p in (p0, p1, p2, p3))
    mt = 1.0 - t
    return (
        mt ** 3 * a
        + 3.0 * mt ** 2 * t * b
        + 3.0 * mt * t ** 2 * c
        + t ** 3 * d
    )


# ---------------------------------------------------------------------------
# Adaptive Bézier flattening
# ---------------------------------------------------------------------------


def _control_deviation(q1: np.ndarray, q2: np.ndarray, q3: np.ndarray, q4: np.ndarray) -> float:
    """Largest distance of the inner control points from the chord q1-q4."""
    chord = q4 - q1
    chord_len = float(np.hypot(chord[0], chord[1]))
    if chord_len < _EPS:
        # Closed loop: measure from the shared end point instead.
        return max(float(np.hypot(*(q2 - q1))), float(np.hypot(*(q3 - q1))))
    v2 = q2 - q1
    v3 = q3 - q1
    d2 = abs(v2[0] * chord[1] - v2[1] * chord[0]) / chord_len
    d3 = abs(v3[0] * chord[1] - v3[1] * chord[0]) / chord_len
    return max(float(d2), float(d3))


def flatten_cubic(
    p0: Point,
    p1: Point,
    p2: Point,
    p3: Point,
    resolution: float,
    max_depth: int = 12,
) -> np.ndarray:
    """Flatten a cubic Bézier via adaptive de Casteljau subdivision.

    Parameters
    ----------
    p0, p1, p2, p3 : Point
        Start, two control points, end.
    resolution : float
        Segments per unit; the flatness tolerance is ``1 / resolution``.
    max_depth : int
        Maximum recursion depth, default 12.

    Returns
    -------
    np.ndarray
        Polyline vertices, shape (N, 2), N ≥ 2.
    """
    q = [np.asarray(p, dtype=float) for p in (p0, p1, p2, p3)]
    if resolution <= 0 or not math.isfinite(resolution):
        return np.vstack([q[0], q[3]])
    tolerance = 1.0 / resolution

    out: list[np.ndarray] = [q[0]]

    def subdivide(q1, q2, q3, q4, depth: int) -> None:
        if depth >= max_depth or _control_deviation(q1, q2, q3, q4) <= tolerance:
            out.append(q4)
            return
        q12 = (q1 + q2) / 2.0
        q23 = (q2 + q3) / 2.0
        q34 = (q3 + q4) / 2.0
        q123 = (q12 + q23) / 2.0
        q234 = (q23 + q34) / 2.0
        q1234 = (q123 + q234) / 2.0
        subdivide(q1, q12, q123, q1234, depth + 1)
        subdivide(q1234, q234, q34, q4, depth + 1)

    subdivide(q[0], q[1], q[2], q[3], 0)
    return np.vstack(out)


def flatten_quadratic(
    p0: Point, p1: Point, p2: Point, resolution: float, max_depth: int = 12,
) -> np.ndarray:
    """Flatten a quadratic Bézier (degree-elevated to a cubic)."""
    a, b, c = (np.asarray(p, dtype=float) for p in (p0, p1, p2))
    c1 = a + 2.0 / 3.0 * (b - a)
    c2 = c + 2.0 / 3.0 * (b - c)
    return flatten_cubic(
        tuple(a), tuple(c1), tuple(c2), tuple(c), resolution, max_depth,
    )


# ---------------------------------------------------------------------------
# Elliptical arcs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ArcCenter:
    """Center parametrization of an SVG arc.

    Parameters
    ----------
    cx, cy : float
        Ellipse centre.
    rx, ry : float
        Radii, enlarged if the requested ones could not span the chord.
    phi : float
        X-axis rotation in radians.
    theta1 : float
        Start angle in the ellipse's local frame (radians).
    delta : float
        Signed sweep in radians: positive when ``sweep`` is set.
    """

    cx: float
    cy: float
    rx: float
    ry: float
    phi: float
    theta1: float
    delta: float

    @property
    def arc_length(self) -> float:
        """Approximate length: perimeter scaled by the swept fraction."""
        return ellipse_perimeter(self.rx, self.ry) * abs(self.delta) / (2.0 * math.pi)


def _vector_angle(ux: float, uy: float, vx: float, vy: float) -> float:
    dot = ux * vx + uy * vy
    length = math.hypot(ux, uy) * math.hypot(vx, vy)
    angle = math.acos(min(1.0, max(-1.0, dot / length)))
    if ux * vy - uy * vx < 0:
        angle = -angle
    return angle


def arc_endpoint_to_center(
    start: Point,
    end: Point,
    rx: float,
    ry: float,
    rotation: float,
    large_arc: bool,
    sweep: bool,
) -> ArcCenter | None:
    """Convert an SVG endpoint arc to center form (SVG 1.1 §F.6.5).

    Returns ``None`` for degenerate arcs: coincident end points or a
    zero radius.  Out-of-range radii are scaled up uniformly.
    """
    x1, y1 = start
    x2, y2 = end
    rx = abs(rx)
    ry = abs(ry)
    if (x1 == x2 and y1 == y2) or rx == 0.0 or ry == 0.0:
        return None

    phi = math.radians(rotation)
    cos_phi = math.cos(phi)
    sin_phi = math.sin(phi)

    # 1) Rotate the half-chord into the ellipse frame
    dx2 = (x1 - x2) / 2.0
    dy2 = (y1 - y2) / 2.0
    x1p = cos_phi * dx2 + sin_phi * dy2
    y1p = -sin_phi * dx2 + cos_phi * dy2

    # 2) Enlarge radii if infeasible
    lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lam > 1.0:
        root = math.sqrt(lam)
        rx *= root
        ry *= root

    # 3) Centre in the ellipse frame; flags pick one of two solutions
    sign = -1.0 if large_arc == sweep else 1.0
    num = rx * rx * ry * ry - rx * rx * y1p * y1p - ry * ry * x1p * x1p
    den = rx * rx * y1p * y1p + ry * ry * x1p * x1p
    coef = sign * math.sqrt(max(0.0, num / den))
    cxp = coef * (rx * y1p / ry)
    cyp = coef * (-ry * x1p / rx)

    # 4) Back to user space
    cx = cos_phi * cxp - sin_phi * cyp + (x1 + x2) / 2.0
    cy = sin_phi * cxp + cos_phi * cyp + (y1 + y2) / 2.0

    # 5) Start angle and signed sweep
    ux = (x1p - cxp) / rx
    uy = (y1p - cyp) / ry
    vx = (-x1p - cxp) / rx
    vy = (-y1p - cyp) / ry
    theta1 = _vector_angle(1.0, 0.0, ux, uy)
    delta = _vector_angle(ux, uy, vx, vy)
    if not sweep and delta > 0:
        delta -= 2.0 * math.pi
    elif sweep and delta < 0:
        delta += 2.0 * math.pi

    return ArcCenter(cx=cx, cy=cy, rx=rx, ry=ry, phi=phi, theta1=theta1, delta=delta)


def flatten_arc(
    start: Point,
    end: Point,
    rx: float,
    ry: float,
    rotation: float,
    large_arc: bool,
    sweep: bool,
    resolution: float,
) -> np.ndarray:
    """Flatten an SVG elliptical arc.

    The segment count is ``max(2, round(resolution * arc_length))``.
    A zero radius degrades to a straight line; coincident end points
    draw nothing (a single point is returned).

    Returns
    -------
    np.ndarray
        Shape (N, 2), first row == *start*, last row == *end*.
    """
    if start[0] == end[0] and start[1] == end[1]:
        return np.asarray([start], dtype=float)

    arc = arc_endpoint_to_center(start, end, rx, ry, rotation, large_arc, sweep)
    if arc is None:
        return np.asarray([start, end], dtype=float)

    segments = segment_count(resolution, arc.arc_length)
    local = ellipse_points(0.0, 0.0, arc.rx, arc.ry, arc.theta1, arc.theta1 + arc.delta, segments)

    cos_phi = math.cos(arc.phi)
    sin_phi = math.sin(arc.phi)
    points = np.column_stack([
        arc.cx + cos_phi * local[:, 0] - sin_phi * local[:, 1],
        arc.cy + sin_phi * local[:, 0] + cos_phi * local[:, 1],
    ])
    points[0] = start
    points[-1] = end
    return points
