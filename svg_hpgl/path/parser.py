"""SVG path-data parser.

Turns a ``d`` attribute string into absolute :mod:`~svg_hpgl.path.commands`
in three layers, each usable on its own:

1. :func:`parse_path_syntax` -- one-pass character lexer producing raw
   instructions (command letter, relative flag, argument values).
2. :func:`key_instruction` -- raw instruction to typed command.
3. :func:`to_absolute` -- relative commands offset by a running cursor.

:func:`parse_path` chains all three.

Lexing rules
------------
- A letter closes the pending number and selects the command; unknown
  letters are skipped.
- ``-``/``+`` start a new number unless they follow an exponent marker,
  so ``10-5`` is ``10 -5``.
- A second ``.`` in one number starts a new number: ``1.5.5`` is
  ``1.5 .5``.
- ``e``/``E`` after digits is an exponent marker.
- Commas and whitespace separate numbers.
- Inside an ``A`` group the two flags are single digits and may be
  written without separators.
- Once a group's arity is reached it is emitted and further numbers form
  implicit repeats of the same command (``M`` repeats as ``L``).

Malformed or out-of-range numbers and incomplete trailing groups are
dropped and reported through :class:`~svg_hpgl.diagnostics.Diagnostics`;
parsing never raises on bad data.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace

from svg_hpgl.diagnostics import DiagnosticKind, Diagnostics
from svg_hpgl.path.commands import (
    COMMAND_ARITY,
    COMMAND_TYPES,
    ArcTo,
    ClosePath,
    PathCommand,
)

logger = logging.getLogger(__name__)

_SEPARATORS = frozenset(", \t\r\n\f")
_ARC_FLAG_SLOTS = (3, 4)


@dataclass(frozen=True, slots=True)
class RawInstruction:
    """Lexer output: one complete argument group of one command.

    Parameters
    ----------
    letter : str
        Upper-case command letter.
    relative : bool
        True if the source used the lower-case letter.
    values : tuple[float, ...]
        Exactly ``COMMAND_ARITY[letter]`` numbers.
    """

    letter: str
    relative: bool
    values: tuple[float, ...]


# ---------------------------------------------------------------------------
# Layer 1: lexer
# ---------------------------------------------------------------------------


class _Lexer:
    """Character state machine behind :func:`parse_path_syntax`."""

    def __init__(self, diagnostics: Diagnostics) -> None:
        self._diag = diagnostics
        self.out: list[RawInstruction] = []
        self.letter = "M"
        self.relative = False
        self.token = ""
        self.has_dot = False
        self.has_exp = False
        self.values: list[float] = []

    # -- token handling ----------------------------------------------------

    def _has_digits(self) -> bool:
        return any(ch.isdigit() for ch in self.token)

    def finish_token(self) -> None:
        if not self.token:
            return
        token = self.token
        self.token = ""
        self.has_dot = False
        self.has_exp = False
        try:
            value = float(token)
        except ValueError:
            self._diag.warn(
                DiagnosticKind.MALFORMED_NUMBER,
                f"dropped unparseable number {token!r}",
            )
            return
        if not math.isfinite(value):
            self._diag.warn(
                DiagnosticKind.MALFORMED_NUMBER,
                f"dropped out-of-range number {token!r}",
            )
            return
        self.push_value(value)

    def push_value(self, value: float) -> None:
        arity = COMMAND_ARITY[self.letter]
        if arity == 0:
            self._diag.warn(
                DiagnosticKind.MALFORMED_NUMBER,
                f"dropped value {value:g} after {self.letter!r}",
            )
            return
        self.values.append(value)
        if len(self.values) == arity:
            self.out.append(
                RawInstruction(self.letter, self.relative, tuple(self.values))
            )
            self.values.clear()
            if self.letter == "M":
                self.letter = "L"

    def finish_command(self) -> None:
        self.finish_token()
        if self.values:
            self._diag.warn(
                DiagnosticKind.MALFORMED_NUMBER,
                f"dropped incomplete {self.letter!r} group {self.values}",
            )
            self.values.clear()

    # -- character classes -------------------------------------------------

    def feed(self, ch: str) -> None:
        if ch in "eE" and self._has_digits() and not self.has_exp:
            self.token += ch
            self.has_exp = True
        elif ch.isalpha():
            self.on_letter(ch)
        elif ch in "+-":
            if self.token[-1:] in ("e", "E"):
                self.token += ch
            else:
                self.finish_token()
                self.token = ch
        elif ch == ".":
            if self.has_dot or self.has_exp:
                self.finish_token()
            self.token += ch
            self.has_dot = True
        elif ch.isdigit():
            if (
                self.letter == "A"
                and not self.token
                and len(self.values) in _ARC_FLAG_SLOTS
            ):
                self.push_value(float(ch))
            else:
                self.token += ch
        else:
            if ch not in _SEPARATORS:
                logger.debug("Treating %r as a separator", ch)
            self.finish_token()

    def on_letter(self, ch: str) -> None:
        self.finish_command()
        upper = ch.upper()
        if upper not in COMMAND_ARITY:
            self._diag.warn(
                DiagnosticKind.UNKNOWN_COMMAND,
                f"skipped unknown path command {ch!r}",
            )
            return
        self.letter = upper
        self.relative = ch.islower()
        if upper == "Z":
            self.out.append(RawInstruction("Z", False, ()))


def parse_path_syntax(
    d: str, diagnostics: Diagnostics | None = None,
) -> list[RawInstruction]:
    """Lex path data into raw instructions.

    Parameters
    ----------
    d : str
        SVG path data, e.g. ``"M10,10 L20,20 C1,1 2,2 3,3 Z"``.
    diagnostics : Diagnostics, optional
        Receives malformed-number and unknown-command warnings.

    Returns
    -------
    list[RawInstruction]
        One entry per complete argument group, in source order.
    """
    lexer = _Lexer(diagnostics if diagnostics is not None else Diagnostics())
    for ch in d:
        lexer.feed(ch)
    lexer.finish_command()
    return lexer.out


# ---------------------------------------------------------------------------
# Layer 2: typed commands
# ---------------------------------------------------------------------------


def key_instruction(raw: RawInstruction) -> PathCommand:
    """Convert a raw instruction into its typed command (flag kept)."""
    if raw.letter == "Z":
        return ClosePath()
    if raw.letter == "A":
        rx, ry, rot, large, sweep, x, y = raw.values
        return ArcTo(
            rx=rx,
            ry=ry,
            rotation=rot,
            large_arc=bool(large),
            sweep=bool(sweep),
            x=x,
            y=y,
            relative=raw.relative,
        )
    cls = COMMAND_TYPES[raw.letter]
    return cls(*raw.values, relative=raw.relative)


# ---------------------------------------------------------------------------
# Layer 3: absolutization
# ---------------------------------------------------------------------------


def to_absolute(commands: list[PathCommand]) -> list[PathCommand]:
    """Resolve relative commands against a running cursor.

    Returns new command objects; the input is not modified.  The cursor
    starts at the origin and follows each command's end point.  ``H``
    and ``V`` update only their own axis and ``Z`` leaves the cursor
    where it is.

    Applying this to an already-absolute list returns equal commands.
    """
    curr_x = 0.0
    curr_y = 0.0
    result: list[PathCommand] = []

    for cmd in commands:
        if cmd.relative:
            offsets = {name: getattr(cmd, name) + curr_x for name in cmd.x_fields()}
            offsets.update(
                {name: getattr(cmd, name) + curr_y for name in cmd.y_fields()}
            )
            cmd = replace(cmd, relative=False, **offsets)
        result.append(cmd)

        if hasattr(cmd, "x"):
            curr_x = cmd.x
        if hasattr(cmd, "y"):
            curr_y = cmd.y

    return result


def parse_path(
    d: str, diagnostics: Diagnostics | None = None,
) -> list[PathCommand]:
    """Parse path data into absolute typed commands."""
    raw = parse_path_syntax(d, diagnostics)
    return to_absolute([key_instruction(r) for r in raw])


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def _fmt(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return format(value, ".10g")


def format_path(commands: list[PathCommand]) -> str:
    """Render commands back to path-data text.

    Relative commands keep their lower-case letter, so
    ``format_path(parse_path(d))`` is absolute path data equivalent to
    ``d``.
    """
    parts = []
    for cmd in commands:
        letter = cmd.letter.lower() if cmd.relative else cmd.letter
        values = cmd.values()
        if values:
            parts.append(letter + " " + ",".join(_fmt(v) for v in values))
        else:
            parts.append(letter)
    return " ".join(parts)
