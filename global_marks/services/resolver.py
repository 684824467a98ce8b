"""
Jump resolver - computes where a mark currently points and moves the cursor there.

Resolution order:
1. The host's live mark table. A non-zero line there is authoritative, since it
   tracks edits the store never saw. A live position that differs from the store
   is written back (same handle), but only once its document is found in a view.
2. The mark store. Scoped marks prefer the current document, then the most recently
   updated entry whose document is loaded, then the most recent entry overall.
3. Neither knows the mark: MarkNotFoundError.

The target document must be shown in some view; the resolver never opens one
(UnresolvableMarkError). Stored columns that no longer fit the line are recovered by
looking for the mark's own glyph near the old column.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from typing import Literal

import attrs

from global_marks.exceptions import MarkNotFoundError, UnresolvableMarkError
from global_marks.protocols import HostProtocol
from global_marks.services.store import MarkStore
from global_marks.types import is_scoped_mark, normalize_mark

__all__ = [
    'JumpResolver',
    'ResolvedLocation',
    'recover_column',
]

logger = logging.getLogger(__name__)


@attrs.define(frozen=True)
class ResolvedLocation:
    """A jump target that is guaranteed to be visible in `view`."""

    mark_id: str
    document_id: int
    line: int
    column: int
    view: Hashable
    source: Literal['host', 'store']


@attrs.define(frozen=True)
class _Candidate:
    document_id: int
    line: int
    column: int
    source: Literal['host', 'store']


def recover_column(line_text: str, column: int, glyph: str) -> int:
    """
    Map a stored byte column onto the line as it is now.

    Columns inside the line are trusted. Otherwise the line is scanned for the mark
    glyph and the occurrence closest to the stored column wins, ties going to the
    occurrence at or before it. Without any occurrence the column is clamped to the
    last byte of the line.

    This is a heuristic: the glyph is the only signal left once the text moved.

    Examples:
        >>> recover_column('xMxMx', 10, 'M')
        3

        >>> recover_column('abc', 1, 'M')
        1

        >>> recover_column('abc', 7, 'M')
        2

        >>> recover_column('', 4, 'M')
        0
    """
    encoded = line_text.encode('utf-8')
    length = len(encoded)
    if 0 <= column < length or (column == 0 and length == 0):
        return column

    needle = glyph.encode('utf-8')
    occurrences: list[int] = []
    position = encoded.find(needle)
    while position != -1:
        occurrences.append(position)
        position = encoded.find(needle, position + 1)

    if not occurrences:
        return max(length - 1, 0)

    # (distance, is-after) sorts at-or-before ahead of after on equal distance
    return min(occurrences, key=lambda pos: (abs(pos - column), pos > column))


class JumpResolver:
    """Resolves mark identifiers against the host and the store."""

    def __init__(self, host: HostProtocol, store: MarkStore) -> None:
        self.host = host
        self.store = store

    def resolve(self, mark: str) -> ResolvedLocation:
        """
        Find the best current location for a mark.

        Args:
            mark: Mark identifier (only the first character is used)

        Returns:
            ResolvedLocation inside a document that is visible in some view

        Raises:
            MarkNotFoundError: Neither host nor store has a record
            UnresolvableMarkError: The record's document is not open in any view
        """
        mark_id = normalize_mark(mark)
        if mark_id is None:
            raise MarkNotFoundError(str(mark))

        candidate = self._from_host(mark_id) or self._from_store(mark_id)
        if candidate is None:
            raise MarkNotFoundError(mark_id)

        view = self._view_showing(candidate.document_id)
        if view is None:
            raise UnresolvableMarkError(mark_id, candidate.document_id, self.host.document_name(candidate.document_id))

        if candidate.source == 'host':
            # Only documents shown in a view are written back; closed ones stay pruned
            self._write_back(mark_id, candidate)

        line = min(max(candidate.line, 1), max(self.host.line_count(candidate.document_id), 1))
        column = recover_column(self.host.line_text(candidate.document_id, line), candidate.column, mark_id)
        if (line, column) != (candidate.line, candidate.column):
            logger.debug(
                f"Mark '{mark_id}' adjusted from {candidate.line}:{candidate.column} to {line}:{column}"
            )

        return ResolvedLocation(
            mark_id=mark_id,
            document_id=candidate.document_id,
            line=line,
            column=column,
            view=view,
            source=candidate.source,
        )

    def jump(self, mark: str) -> ResolvedLocation:
        """Resolve a mark and move the cursor of the view showing it."""
        target = self.resolve(mark)
        self.host.focus_view(target.view)
        self.host.set_cursor(target.view, target.line, target.column)
        logger.debug(f"Jumped to mark '{target.mark_id}' at {target.document_id}:{target.line}:{target.column}")
        return target

    def _from_host(self, mark_id: str) -> _Candidate | None:
        position = self.host.native_mark(mark_id)
        if position is None or position.line <= 0:
            return None

        document_id = self.host.current_document() if is_scoped_mark(mark_id) else position.document_id
        return _Candidate(document_id, position.line, position.column, 'host')

    def _write_back(self, mark_id: str, candidate: _Candidate) -> None:
        """Record a live host position the store has not seen yet (same handle)."""
        stored = (
            self.store.get_scoped(mark_id, candidate.document_id)
            if is_scoped_mark(mark_id)
            else self.store.get_global(mark_id)
        )
        if stored is None or (stored.document_id, stored.line, stored.column) != (
            candidate.document_id,
            candidate.line,
            candidate.column,
        ):
            self.store.register(mark_id, candidate.document_id, candidate.line, candidate.column)

    def _from_store(self, mark_id: str) -> _Candidate | None:
        if is_scoped_mark(mark_id):
            location = self.store.get_scoped(mark_id, self.host.current_document())
            if location is None:
                candidates = self.store.scoped_candidates(mark_id)
                resident = [loc for loc in candidates if self.host.is_document_loaded(loc.document_id)]
                location = (resident or candidates or [None])[0]
        else:
            location = self.store.get_global(mark_id)

        if location is None:
            return None
        return _Candidate(location.document_id, location.line, location.column, 'store')

    def _view_showing(self, document_id: int) -> Hashable | None:
        current = self.host.current_view()
        if current is not None and self.host.view_document(current) == document_id:
            return current
        for view in self.host.views():
            if self.host.view_document(view) == document_id:
                return view
        return None
