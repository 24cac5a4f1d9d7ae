"""HPGL text serialization.

Wire format: each instruction renders as ``<CMD><arg1>,<arg2>,...;`` and
instructions are concatenated without separators, optionally wrapped in
a caller-supplied prefix/suffix::

    PA;SP1;PU;PU10,10;PD20,10;PD20,20;

:func:`parse_hpgl` reads the same syntax back.  Multi-pair moves such
as ``PD1,2,3,4;`` expand into one instruction per pair; mnemonics this
package does not model survive as :class:`RawCommand`.
"""

from __future__ import annotations

import logging
import math
import re
from io import StringIO
from typing import Iterable

from svg_hpgl.program.instructions import (
    HPGLProgram,
    Instruction,
    PenDown,
    PenUp,
    PlotAbsolute,
    RawCommand,
    SelectPen,
)

logger = logging.getLogger(__name__)


class HPGLSyntaxError(ValueError):
    """Raised when serialized HPGL text cannot be parsed."""

    pass


_MNEMONIC_RE = re.compile(r"^([A-Za-z]{2})(.*)$", re.DOTALL)
_ARG_SPLIT_RE = re.compile(r"[,\s]+")


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def format_instruction(instruction: Instruction) -> str:
    """Render one instruction, terminator included."""
    return instruction.command + ",".join(str(a) for a in instruction.args) + ";"


def build_hpgl(program: Iterable[Instruction], prefix: str = "", suffix: str = "") -> str:
    """Serialize a program to HPGL text.

    Parameters
    ----------
    program : Iterable[Instruction]
        Instructions in plot order.
    prefix, suffix : str
        Wrapped verbatim around the instruction text.

    Returns
    -------
    str
        Complete HPGL text.
    """
    buf = StringIO()
    buf.write(prefix)
    for ins in program:
        buf.write(format_instruction(ins))
    buf.write(suffix)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_args(mnemonic: str, text: str) -> list[int]:
    text = text.strip()
    if not text:
        return []
    values: list[int] = []
    for token in _ARG_SPLIT_RE.split(text):
        if not token:
            continue
        try:
            number = float(token)
        except ValueError as exc:
            raise HPGLSyntaxError(
                f"Non-numeric argument {token!r} in {mnemonic} instruction"
            ) from exc
        if not math.isfinite(number):
            raise HPGLSyntaxError(
                f"Non-finite argument {token!r} in {mnemonic} instruction"
            )
        values.append(int(math.floor(number + 0.5)))
    return values


def _parse_token(token: str) -> list[Instruction]:
    m = _MNEMONIC_RE.match(token)
    if m is None:
        raise HPGLSyntaxError(f"Instruction without mnemonic: {token!r}")
    mnemonic = m.group(1).upper()
    rest = m.group(2)

    if mnemonic not in ("PA", "SP", "PU", "PD"):
        return [RawCommand(token)]

    args = _parse_args(mnemonic, rest)

    if mnemonic == "PA":
        # Absolute moves with coordinates are not modelled
        return [PlotAbsolute()] if not args else [RawCommand(token)]

    if mnemonic == "SP":
        if len(args) != 1 or args[0] < 1:
            return [RawCommand(token)]
        return [SelectPen(args[0])]

    if len(args) % 2:
        raise HPGLSyntaxError(
            f"{mnemonic} needs coordinate pairs, got {len(args)} values: {token!r}"
        )
    if not args:
        if mnemonic == "PU":
            return [PenUp()]
        return [RawCommand(token)]

    pairs = list(zip(args[0::2], args[1::2]))
    if mnemonic == "PU":
        return [PenUp(x, y) for x, y in pairs]
    return [PenDown(x, y) for x, y in pairs]


def parse_hpgl(text: str, prefix: str = "", suffix: str = "") -> HPGLProgram:
    """Parse HPGL text into instructions.

    Parameters
    ----------
    text : str
        Serialized program.
    prefix, suffix : str
        Stripped from the ends of *text* when present.

    Returns
    -------
    HPGLProgram
        Parsed instructions.  Non-integral coordinates are rounded
        half up.

    Raises
    ------
    HPGLSyntaxError
        On a token without a two-letter mnemonic, a non-numeric argument
        to ``PA``/``SP``/``PU``/``PD`` or an odd coordinate count.
    """
    if prefix and text.startswith(prefix):
        text = text[len(prefix):]
    if suffix and text.endswith(suffix):
        text = text[: len(text) - len(suffix)]

    program: HPGLProgram = []
    for raw in text.split(";"):
        token = raw.strip()
        if not token:
            continue
        program.extend(_parse_token(token))

    logger.debug("Parsed %d HPGL instructions", len(program))
    return program
