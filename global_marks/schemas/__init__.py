"""
Schema definitions for global-marks.

- persisted: on-disk JSON layout of the mark registry
"""

from __future__ import annotations

from global_marks.schemas.persisted import (
    PersistedLocation,
    StoreSnapshot,
    dump_store_document,
    parse_store_document,
)

__all__ = [
    'PersistedLocation',
    'StoreSnapshot',
    'dump_store_document',
    'parse_store_document',
]
