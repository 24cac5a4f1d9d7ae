"""Immutable 2-D affine matrices.

An :class:`AffineMatrix` holds the six SVG coefficients ``(a, b, c, d,
e, f)`` and maps a point as::

    x' = a*x + c*y + e
    y' = b*x + d*y + f

which is the row-vector product ``[x' y' 1] = [x y 1] · M`` with::

    M = | a  b  0 |
        | c  d  0 |
        | e  f  1 |

Composition order
-----------------
``compose(outer, inner)`` returns the matrix that applies *inner* first
and *outer* second, i.e. ``compose(A, B)(p) == A(B(p))``.  This is the
``A.multiply(B)`` order of SVG/DOM matrices.  The builder-style helpers
(:func:`translate`, :func:`rotate`, :func:`scale`, ...) post-multiply, so
chaining ``scale(rotate(translate(I, 5, 0), 90), 2)`` scales a point
first and translates it last -- the same semantics as the DOM
``translate().rotate().scale()`` chain, without mutation.

Angles are in degrees.  With SVG's +Y-down axis a positive rotation is
clockwise on screen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class AffineMatrix:
    """Six-coefficient affine transform.  Defaults to identity."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    def __matmul__(self, other: AffineMatrix) -> AffineMatrix:
        return compose(self, other)

    def __call__(self, x: float, y: float) -> tuple[float, float]:
        return apply(self, x, y)

    def as_array(self) -> np.ndarray:
        """3x3 row-vector form ``[[a, b, 0], [c, d, 0], [e, f, 1]]``."""
        return np.array(
            [[self.a, self.b, 0.0], [self.c, self.d, 0.0], [self.e, self.f, 1.0]],
            dtype=float,
        )

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    def is_identity(self, tol: float = 1e-12) -> bool:
        return all(
            abs(v - w) <= tol
            for v, w in zip(
                (self.a, self.b, self.c, self.d, self.e, self.f),
                (1.0, 0.0, 0.0, 1.0, 0.0, 0.0),
            )
        )


IDENTITY = AffineMatrix()


# ---------------------------------------------------------------------------
# Elementary matrices
# ---------------------------------------------------------------------------


def translation(dx: float, dy: float = 0.0) -> AffineMatrix:
    return AffineMatrix(e=dx, f=dy)


def scaling(sx: float, sy: float | None = None) -> AffineMatrix:
    return AffineMatrix(a=sx, d=sx if sy is None else sy)


def rotation(degrees: float, cx: float = 0.0, cy: float = 0.0) -> AffineMatrix:
    """Rotation by *degrees* about ``(cx, cy)``."""
    rad = math.radians(degrees)
    cos_a = math.cos(rad)
    sin_a = math.sin(rad)
    rot = AffineMatrix(a=cos_a, b=sin_a, c=-sin_a, d=cos_a)
    if cx == 0.0 and cy == 0.0:
        return rot
    return compose(translation(cx, cy), compose(rot, translation(-cx, -cy)))


def skewing_x(degrees: float) -> AffineMatrix:
    return AffineMatrix(c=math.tan(math.radians(degrees)))


def skewing_y(degrees: float) -> AffineMatrix:
    return AffineMatrix(b=math.tan(math.radians(degrees)))


# ---------------------------------------------------------------------------
# Algebra
# ---------------------------------------------------------------------------


def compose(outer: AffineMatrix, inner: AffineMatrix) -> AffineMatrix:
    """Return ``outer · inner``: apply *inner* first, then *outer*."""
    return AffineMatrix(
        a=outer.a * inner.a + outer.c * inner.b,
        b=outer.b * inner.a + outer.d * inner.b,
        c=outer.a * inner.c + outer.c * inner.d,
        d=outer.b * inner.c + outer.d * inner.d,
        e=outer.a * inner.e + outer.c * inner.f + outer.e,
        f=outer.b * inner.e + outer.d * inner.f + outer.f,
    )


def compose_all(*matrices: AffineMatrix) -> AffineMatrix:
    """Left-to-right fold: ``compose_all(A, B, C) == A · B · C``."""
    result = IDENTITY
    for m in matrices:
        result = compose(result, m)
    return result


def invert(m: AffineMatrix) -> AffineMatrix:
    """Inverse matrix.

    Raises
    ------
    ValueError
        If *m* is singular.
    """
    det = m.determinant
    if abs(det) < 1e-15:
        raise ValueError(f"Matrix is not invertible (det={det:g})")
    return AffineMatrix(
        a=m.d / det,
        b=-m.b / det,
        c=-m.c / det,
        d=m.a / det,
        e=(m.c * m.f - m.d * m.e) / det,
        f=(m.b * m.e - m.a * m.f) / det,
    )


# -- builder-style helpers (post-multiply, return new matrices) -------------


def translate(m: AffineMatrix, dx: float, dy: float = 0.0) -> AffineMatrix:
    return compose(m, translation(dx, dy))


def scale(m: AffineMatrix, sx: float, sy: float | None = None) -> AffineMatrix:
    return compose(m, scaling(sx, sy))


def rotate(m: AffineMatrix, degrees: float) -> AffineMatrix:
    return compose(m, rotation(degrees))


def flip_x(m: AffineMatrix) -> AffineMatrix:
    """Mirror across the y axis (negate x), post-multiplied."""
    return compose(m, AffineMatrix(a=-1.0))


def flip_y(m: AffineMatrix) -> AffineMatrix:
    """Mirror across the x axis (negate y), post-multiplied."""
    return compose(m, AffineMatrix(d=-1.0))


# ---------------------------------------------------------------------------
# Point mapping
# ---------------------------------------------------------------------------


def apply(m: AffineMatrix, x: float, y: float) -> tuple[float, float]:
    return (m.a * x + m.c * y + m.e, m.b * x + m.d * y + m.f)


def apply_points(m: AffineMatrix, points: np.ndarray) -> np.ndarray:
    """Map an ``(N, 2)`` array of points; returns a new ``(N, 2)`` array."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    homogeneous = np.hstack([pts, np.ones((pts.shape[0], 1))])
    return (homogeneous @ m.as_array())[:, :2]


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round to the nearest integer, halves toward +inf."""
    return np.floor(np.asarray(values, dtype=float) + 0.5).astype(np.int64)
