"""
Extracted task record.

A Task is a value recomputed on every extraction pass. It is never mutated
and never persisted; graph state refers to it only through ``id``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass(frozen=True)
class Task:
    """A single checklist line found in a document."""

    id: str
    text: str
    status: str
    path: str
    line: int
    raw_text: str

    @property
    def file_name(self) -> str:
        """Document base name without extension, e.g. "report" for "notes/report.md"."""
        return PurePosixPath(self.path).stem
