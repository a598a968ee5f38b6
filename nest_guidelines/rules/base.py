"""Base rule protocol and finding model."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol

Severity = Literal["error", "warning"]

ERROR: Severity = "error"
WARNING: Severity = "warning"


@dataclass(frozen=True, slots=True)
class Finding:
    """A single guideline violation emitted by a rule."""

    rule_id: str
    path: str
    message: str
    severity: Severity = ERROR
    line: int | None = None
    column: int | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR


class Rule(Protocol):
    """Protocol for fixed guideline rules."""

    rule_id: str
    description: str

    def validate(self, path: str) -> list[Finding]:
        """Validate one file and return its findings."""


def read_source(path: str) -> str:
    """Read a source file as UTF-8 text."""
    return Path(path).read_text(encoding="utf-8")


def location_of(text: str, offset: int) -> tuple[int, int]:
    """Return the 1-based line and 0-based column of ``offset`` in ``text``."""
    before = text[:offset]
    line = before.count("\n") + 1
    column = offset - (before.rfind("\n") + 1)
    return (line, column)
