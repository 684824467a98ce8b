"""
Shared type definitions for the global-marks package.

Centralizes the mark identifier rules used across modules. Scope is derived from the
identifier's case and is never stored separately:

- lowercase letters are scoped marks (one location per document)
- everything else (uppercase letters, digits, punctuation) is a global mark
"""

from __future__ import annotations

from typing import Literal

DocumentId = int
MarkId = str
Scope = Literal['global', 'scoped']

__all__ = [
    'DocumentId',
    'MarkId',
    'Scope',
    'is_mark_id',
    'is_scoped_mark',
    'mark_scope',
    'normalize_mark',
]


def is_mark_id(key: object) -> bool:
    """Return whether key is a valid single-character mark identifier."""
    return isinstance(key, str) and len(key) == 1 and key.isprintable() and not key.isspace()


def is_scoped_mark(mark_id: MarkId) -> bool:
    """Lowercase identifiers are remembered per document."""
    return mark_id.islower()


def mark_scope(mark_id: MarkId) -> Scope:
    return 'scoped' if is_scoped_mark(mark_id) else 'global'


def normalize_mark(mark: object) -> MarkId | None:
    """
    Reduce host input to a mark identifier.

    Hosts hand over whatever the user typed; only the first character counts.

    Examples:
        >>> normalize_mark('a')
        'a'

        >>> normalize_mark('Abc')
        'A'

        >>> normalize_mark('') is None
        True
    """
    if mark is None:
        return None
    text = str(mark)
    if not text:
        return None
    candidate = text[0]
    return candidate if is_mark_id(candidate) else None
