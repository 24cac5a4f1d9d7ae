"""Soft-failure reporting for the conversion pipeline.

Nothing in the geometry pipeline is fatal: malformed numbers are skipped,
detached elements fall back to the identity transform, missing attributes
read as zero.  Each of those recoveries is recorded here as a
:class:`Diagnostic` so that callers (and tests) can inspect what was
degraded instead of scraping log output.

Every recorded diagnostic is also logged at WARNING level.

Usage::

    diagnostics = Diagnostics()
    program = svg_to_hpgl(scene, pens, options, diagnostics=diagnostics)
    for diag in diagnostics.of_kind(DiagnosticKind.MISSING_ATTRIBUTE):
        print(diag.element_id, diag.message)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    """Category of a recovered soft failure."""

    MALFORMED_NUMBER = "malformed_number"
    UNKNOWN_COMMAND = "unknown_command"
    MISSING_VIEWPORT = "missing_viewport"
    MISSING_ATTRIBUTE = "missing_attribute"
    UNSUPPORTED_ELEMENT = "unsupported_element"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One recorded warning.

    Parameters
    ----------
    kind : DiagnosticKind
        Failure category.
    message : str
        Human-readable description.
    element_id : str | None
        ``id`` of the offending SVG element, when known.
    """

    kind: DiagnosticKind
    message: str
    element_id: str | None = None

    def __str__(self) -> str:
        where = f" [{self.element_id}]" if self.element_id else ""
        return f"{self.kind.value}{where}: {self.message}"


DiagnosticSink = Callable[[Diagnostic], None]


class Diagnostics:
    """Ordered collector of :class:`Diagnostic` records.

    Parameters
    ----------
    sink : callable, optional
        Called with every diagnostic as it is recorded.
    """

    def __init__(self, sink: DiagnosticSink | None = None) -> None:
        self._records: list[Diagnostic] = []
        self._sink = sink

    def warn(
        self,
        kind: DiagnosticKind,
        message: str,
        element_id: str | None = None,
    ) -> Diagnostic:
        """Record, log and forward one diagnostic."""
        diag = Diagnostic(kind=kind, message=message, element_id=element_id)
        self._records.append(diag)
        logger.warning("%s", diag)
        if self._sink is not None:
            self._sink(diag)
        return diag

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self._records if d.kind == kind]

    @property
    def records(self) -> tuple[Diagnostic, ...]:
        return tuple(self._records)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)
