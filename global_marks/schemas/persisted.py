"""
Persisted mark file schemas.

The file is one JSON object keyed by mark identifier:

    {
      "A": {"documentId": 3, "line": 12, "column": 4, "handle": 1001},
      "a": {
        "3": {"documentId": 3, "line": 5, "column": 0, "handle": 1002},
        "7": {"documentId": 7, "line": 9, "column": 2, "handle": 1003}
      }
    }

Uppercase (global) keys hold a single location. Lowercase (scoped) keys hold an
object keyed by the string-encoded document id.

Readers tolerate older files:
- a missing handle (a new one is allocated on restore)
- the legacy flat shape, where a lowercase key holds a single location
  (migrated into a one-document nested entry)
- the legacy field names bufnr/row/col/sign_id
Anything else that does not validate is discarded entry by entry.
"""

from __future__ import annotations

import logging
from typing import Any

import pydantic
from pydantic import AliasChoices, Field

from global_marks.base_model import StrictModel
from global_marks.types import is_mark_id, is_scoped_mark

__all__ = [
    'PersistedLocation',
    'StoreSnapshot',
    'dump_store_document',
    'parse_store_document',
]

logger = logging.getLogger(__name__)

# Keys that identify a value as a single location rather than a per-document mapping
_LOCATION_KEYS = frozenset({'documentId', 'line', 'bufnr', 'row'})


# ==============================================================================
# Models
# ==============================================================================


class PersistedLocation(StrictModel):
    """One stored location, as written to disk."""

    model_config = pydantic.ConfigDict(
        extra='ignore',  # Older files carry sign_name and similar display-only keys
        strict=True,
        frozen=True,
        populate_by_name=True,
    )

    document_id: int = Field(
        validation_alias=AliasChoices('documentId', 'document_id', 'bufnr'),
        serialization_alias='documentId',
    )
    line: int = Field(ge=1, validation_alias=AliasChoices('line', 'row'))
    column: int = Field(0, ge=0, validation_alias=AliasChoices('column', 'col'))
    handle: int | None = Field(None, validation_alias=AliasChoices('handle', 'sign_id'))


class StoreSnapshot(StrictModel):
    """Complete serializable state of a MarkStore."""

    global_marks: dict[str, PersistedLocation] = Field(default_factory=dict)
    scoped_marks: dict[str, dict[int, PersistedLocation]] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.global_marks and not any(self.scoped_marks.values())


# ==============================================================================
# Parsing
# ==============================================================================


def _parse_location(mark_id: str, raw: object) -> PersistedLocation | None:
    try:
        return PersistedLocation.model_validate(raw)
    except pydantic.ValidationError as e:
        logger.warning(f"Discarding malformed location for mark '{mark_id}': {e.error_count()} error(s)")
        return None


def _is_flat_location(raw: dict[str, Any]) -> bool:
    return bool(_LOCATION_KEYS.intersection(raw))


def _parse_scoped(mark_id: str, raw: dict[str, Any]) -> dict[int, PersistedLocation]:
    if _is_flat_location(raw):
        # Legacy flat shape: migrate into a single nested document entry
        location = _parse_location(mark_id, raw)
        if location is None:
            return {}
        logger.info(f"Migrating legacy flat entry for mark '{mark_id}' (document {location.document_id})")
        return {location.document_id: location}

    per_document: dict[int, PersistedLocation] = {}
    for document_key, raw_location in raw.items():
        try:
            document_id = int(document_key)
        except ValueError:
            logger.warning(f"Discarding mark '{mark_id}' entry with non-integer document key {document_key!r}")
            continue
        if isinstance(raw_location, dict):
            # The key wins over any nested document id
            raw_location = {**raw_location, 'documentId': document_id}
        location = _parse_location(mark_id, raw_location)
        if location is not None:
            per_document[document_id] = location
    return per_document


def parse_store_document(raw: object) -> StoreSnapshot:
    """
    Convert a decoded JSON document into a StoreSnapshot.

    Never raises: invalid entries are logged and skipped, a non-object top level
    yields an empty snapshot.

    Args:
        raw: Result of json.load on the persisted file

    Returns:
        StoreSnapshot with every entry that validated
    """
    if not isinstance(raw, dict):
        logger.warning(f'Persisted marks are not a JSON object ({type(raw).__name__}); starting empty')
        return StoreSnapshot()

    global_marks: dict[str, PersistedLocation] = {}
    scoped_marks: dict[str, dict[int, PersistedLocation]] = {}

    for mark_id, value in raw.items():
        if not is_mark_id(mark_id):
            logger.warning(f'Discarding invalid mark key {mark_id!r}')
            continue
        if not isinstance(value, dict):
            logger.warning(f"Discarding mark '{mark_id}': expected object, got {type(value).__name__}")
            continue

        if is_scoped_mark(mark_id):
            per_document = _parse_scoped(mark_id, value)
            if per_document:
                scoped_marks[mark_id] = per_document
        else:
            location = _parse_location(mark_id, value)
            if location is not None:
                global_marks[mark_id] = location

    return StoreSnapshot(global_marks=global_marks, scoped_marks=scoped_marks)


# ==============================================================================
# Serialization
# ==============================================================================


def dump_store_document(snapshot: StoreSnapshot) -> dict[str, Any]:
    """Convert a StoreSnapshot into the JSON-ready file layout."""
    document: dict[str, Any] = {}
    for mark_id, location in sorted(snapshot.global_marks.items()):
        document[mark_id] = location.model_dump(mode='json', by_alias=True)
    for mark_id, per_document in sorted(snapshot.scoped_marks.items()):
        if not per_document:
            continue
        document[mark_id] = {
            str(document_id): location.model_dump(mode='json', by_alias=True)
            for document_id, location in sorted(per_document.items())
        }
    return document
