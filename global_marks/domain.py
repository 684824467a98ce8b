"""
Domain models for mark tracking.

Separation of concerns:
- schemas/persisted.py: on-disk JSON representation (parsing, migration)
- domain.py: in-memory records and host-facing value objects (this file)

Coordinates follow one convention everywhere: lines are 1-based, columns are 0-based
byte offsets into the UTF-8 encoding of the line. A line of 0 means "no mark".
"""

from __future__ import annotations

from typing import NamedTuple

from global_marks.base_model import MutableModel, StrictModel

__all__ = [
    'Annotation',
    'Location',
    'MarkListing',
    'NativePosition',
]


class Location(MutableModel):
    """Last known position of one (mark, document) pair, owned by the MarkStore."""

    document_id: int
    line: int
    column: int
    handle: int | None = None  # Annotation handle, stable until the pair is removed
    sequence: int = 0  # Store-local update order, used to pick the most recent candidate


class NativePosition(StrictModel):
    """A mark position as reported by the host's own mark table."""

    document_id: int
    line: int
    column: int


class Annotation(StrictModel):
    """Visual indicator placement request for one (mark, document) pair."""

    handle: int
    mark_id: str
    document_id: int
    line: int
    name: str  # Sign name, e.g. 'GlobalMarkSign_A'
    group: str
    priority: int


class MarkListing(NamedTuple):
    """One row of MarkStore.list_marks(); sorts by (mark_id, document_id, line)."""

    mark_id: str
    document_id: int
    line: int
