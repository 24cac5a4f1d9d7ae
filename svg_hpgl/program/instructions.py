"""HPGL instructions -- the vocabulary between flattened geometry and plot text.

Every instruction is an immutable, slotted dataclass.  Coordinates are
integer plot units, already rounded by the plot transform; nothing here
performs geometry.

Each instruction exposes its two-letter mnemonic as ``command`` and its
numeric (or raw) arguments as ``args``, which is all the serializer and
the scan utilities (bounding box, round-trip export) need.

Grouping
--------
A *stroke* is a contiguous run that starts with a ``PenUp`` carrying a
position and continues with one or more ``PenDown`` moves.  See
:func:`split_strokes`.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from typing import ClassVar

# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Instruction(ABC):
    """Base class for all plotter instructions."""

    command: ClassVar[str] = ""

    @property
    def args(self) -> tuple[int, ...]:
        return ()


# ---------------------------------------------------------------------------
# Setup instructions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlotAbsolute(Instruction):
    """Switch the plotter to absolute coordinates (``PA``).

    Emitted once at the start of every program.
    """

    command: ClassVar[str] = "PA"


@dataclass(frozen=True, slots=True)
class SelectPen(Instruction):
    """Choose the active pen (``SP<n>``).

    Parameters
    ----------
    pen : int
        Pen number, ``>= 1``.
    """

    command: ClassVar[str] = "SP"
    pen: int

    def __post_init__(self) -> None:
        if self.pen < 1:
            raise ValueError(f"pen must be >= 1, got {self.pen}")

    @property
    def args(self) -> tuple[int, ...]:
        return (self.pen,)


@dataclass(frozen=True, slots=True)
class RawCommand(Instruction):
    """Caller-defined instruction, serialized verbatim as ``text;``.

    Parameters
    ----------
    text : str
        Full instruction text without the terminating ``;``
        (e.g. ``"VS10"``).
    """

    text: str

    @property
    def command(self) -> str:  # type: ignore[override]
        return self.text


# ---------------------------------------------------------------------------
# Motion instructions  (integer plot coordinates)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PenUp(Instruction):
    """Raise the pen, optionally travelling to ``(x, y)``.

    Parameters
    ----------
    x, y : int | None
        Target position.  Both ``None`` for a bare ``PU`` (pen lift in
        place, as emitted right after a pen select).
    """

    command: ClassVar[str] = "PU"
    x: int | None = None
    y: int | None = None

    def __post_init__(self) -> None:
        if (self.x is None) != (self.y is None):
            raise ValueError("PenUp needs both coordinates or neither")

    @property
    def args(self) -> tuple[int, ...]:
        if self.x is None:
            return ()
        return (self.x, self.y)


@dataclass(frozen=True, slots=True)
class PenDown(Instruction):
    """Lower the pen and draw to ``(x, y)``."""

    command: ClassVar[str] = "PD"
    x: int
    y: int

    @property
    def args(self) -> tuple[int, ...]:
        return (self.x, self.y)


HPGLProgram = list[Instruction]
"""Ordered instruction list; order is plot order."""


# ---------------------------------------------------------------------------
# Stroke helpers
# ---------------------------------------------------------------------------


def is_motion(instruction: Instruction) -> bool:
    """True for ``PenUp``/``PenDown`` carrying a position."""
    return isinstance(instruction, (PenUp, PenDown)) and len(instruction.args) == 2


def split_strokes(program: HPGLProgram) -> list[list[tuple[int, int]]]:
    """Split a program into contiguous pen-down polylines.

    Each stroke starts at the last positioned ``PenUp`` (or the previous
    stroke's end) and collects the following ``PenDown`` points.
    Setup instructions and bare pen lifts end nothing; a positioned
    ``PenUp`` ends the current stroke.

    Parameters
    ----------
    program : HPGLProgram
        Flat instruction list.

    Returns
    -------
    list[list[tuple[int, int]]]
        Polylines with at least 2 points each.
    """
    strokes: list[list[tuple[int, int]]] = []
    current: list[tuple[int, int]] = []
    position: tuple[int, int] | None = None

    for ins in program:
        if isinstance(ins, PenUp) and ins.x is not None:
            if len(current) >= 2:
                strokes.append(current)
            current = []
            position = (ins.x, ins.y)
        elif isinstance(ins, PenDown):
            if not current:
                current = [position if position is not None else (0, 0)]
            current.append((ins.x, ins.y))
            position = (ins.x, ins.y)

    # Residual run that was never followed by a pen lift
    if len(current) >= 2:
        strokes.append(current)

    return strokes
