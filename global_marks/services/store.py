"""
Mark store - authoritative in-memory table of mark locations.

Global (non-lowercase) marks have one location each. Scoped (lowercase) marks keep an
independent location per document under the same identifier.

Every (mark, document) pair owns one annotation handle from the moment it is first
registered until it is removed, pruned or replaced by a move to another document.
Re-registering the same pair reuses its handle, so the host can update the gutter
sign in place.

Store operations never raise: invalid input and failing annotation callbacks are
logged and ignored.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterator

from global_marks.config.marks import MarksSettings
from global_marks.domain import Annotation, Location, MarkListing
from global_marks.protocols import AnnotationSink
from global_marks.schemas.persisted import PersistedLocation, StoreSnapshot
from global_marks.types import is_mark_id, is_scoped_mark

__all__ = [
    'HandleAllocator',
    'MarkStore',
]

logger = logging.getLogger(__name__)


class HandleAllocator:
    """Strictly increasing annotation handles, starting above a base value."""

    def __init__(self, base: int) -> None:
        self._last = base

    def allocate(self) -> int:
        self._last += 1
        return self._last

    def observe(self, handle: int) -> None:
        """Advance past a handle that came from outside (the persisted file)."""
        self._last = max(self._last, handle)


class MarkStore:
    """
    Mark registry keyed by mark identifier and, for scoped marks, by document.

    Construct one per process; MarksSession owns it.
    """

    def __init__(
        self,
        annotations: AnnotationSink,
        current_document: Callable[[], int],
        settings: MarksSettings,
    ) -> None:
        """
        Initialize an empty store.

        Args:
            annotations: Receives placement/removal callbacks keyed by handle
            current_document: Returns the caller's current document (default scope for removals)
            settings: Annotation naming and handle base
        """
        self.annotations = annotations
        self.current_document = current_document
        self.settings = settings
        self.handles = HandleAllocator(settings.HANDLE_BASE)

        self._global: dict[str, Location] = {}
        self._scoped: dict[str, dict[int, Location]] = {}
        self._sequence = itertools.count(1)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    def register(self, mark_id: str, document_id: int, line: int, column: int) -> Location | None:
        """
        Upsert the location of a mark.

        A line of 0 (or less) is a deletion signal and behaves as remove().

        Args:
            mark_id: Single-character mark identifier
            document_id: Document the mark points into
            line: 1-based line
            column: 0-based byte column

        Returns:
            The stored Location, or None when nothing is stored
        """
        if not is_mark_id(mark_id):
            logger.warning(f'Ignoring register for invalid mark id {mark_id!r}')
            return None

        if line <= 0:
            self.remove(mark_id, document_id if is_scoped_mark(mark_id) else None)
            return None

        column = max(column, 0)
        existing = self._lookup(mark_id, document_id)

        if existing is None and not is_scoped_mark(mark_id):
            moved_from = self._global.get(mark_id)
            if moved_from is not None:
                # A global mark moving to another document ends the old pair
                self._remove_annotation(moved_from)

        if existing is not None:
            existing.line = line
            existing.column = column
            existing.sequence = next(self._sequence)
            location = existing
        else:
            location = Location(
                document_id=document_id,
                line=line,
                column=column,
                handle=self.handles.allocate(),
                sequence=next(self._sequence),
            )
            self._insert(mark_id, location)

        self.place_annotation(mark_id, location)
        return location

    def remove(self, mark_id: str, document_id: int | None = None) -> bool:
        """
        Delete one entry and release its handle.

        For scoped marks the document defaults to the caller's current document.
        For global marks a given document_id must match the stored one.

        Returns:
            True if an entry was removed, False if none existed
        """
        if not is_mark_id(mark_id):
            return False

        if is_scoped_mark(mark_id):
            if document_id is None:
                document_id = self.current_document()
            per_document = self._scoped.get(mark_id)
            location = per_document.pop(document_id, None) if per_document else None
            if per_document is not None and not per_document:
                del self._scoped[mark_id]
        else:
            location = self._global.get(mark_id)
            if location is not None and document_id is not None and location.document_id != document_id:
                return False
            self._global.pop(mark_id, None)

        if location is None:
            return False

        self._remove_annotation(location)
        logger.debug(f"Removed mark '{mark_id}' from document {location.document_id}")
        return True

    def prune(self, document_id: int) -> int:
        """
        Delete every entry referencing document_id, releasing handles.

        Returns:
            Number of entries removed
        """
        removed = 0
        for mark_id, _location in self.entries_for(document_id):
            if self.remove(mark_id, document_id):
                removed += 1
        if removed:
            logger.info(f'Pruned {removed} mark(s) for closed document {document_id}')
        return removed

    def clear_all(self) -> None:
        """Remove every entry, releasing all annotations."""
        for mark_id, document_id, _line in self.list_marks():
            self.remove(mark_id, document_id)

    # ==========================================================================
    # Queries
    # ==========================================================================

    def list_marks(self) -> list[MarkListing]:
        """All (mark_id, document_id, line) triples in ascending order."""
        rows = [MarkListing(mark_id, loc.document_id, loc.line) for mark_id, loc in self._iter_entries()]
        return sorted(rows)

    def get_global(self, mark_id: str) -> Location | None:
        return self._global.get(mark_id)

    def get_scoped(self, mark_id: str, document_id: int) -> Location | None:
        return self._scoped.get(mark_id, {}).get(document_id)

    def scoped_candidates(self, mark_id: str) -> list[Location]:
        """Every document entry of a scoped mark, most recently updated first."""
        per_document = self._scoped.get(mark_id, {})
        return sorted(per_document.values(), key=lambda loc: loc.sequence, reverse=True)

    def entries_for(self, document_id: int) -> list[tuple[str, Location]]:
        """(mark_id, location) pairs pointing into document_id, ordered by mark."""
        return sorted(
            ((mark_id, loc) for mark_id, loc in self._iter_entries() if loc.document_id == document_id),
            key=lambda pair: pair[0],
        )

    def __len__(self) -> int:
        return sum(1 for _ in self._iter_entries())

    # ==========================================================================
    # Annotations
    # ==========================================================================

    def annotation_for(self, mark_id: str, location: Location) -> Annotation | None:
        if location.handle is None:
            return None
        return Annotation(
            handle=location.handle,
            mark_id=mark_id,
            document_id=location.document_id,
            line=location.line,
            name=f'{self.settings.ANNOTATION_PREFIX}_{mark_id}',
            group=self.settings.ANNOTATION_GROUP,
            priority=self.settings.ANNOTATION_PRIORITY,
        )

    def place_annotation(self, mark_id: str, location: Location) -> None:
        """(Re)issue the placement callback for one entry."""
        annotation = self.annotation_for(mark_id, location)
        if annotation is None:
            return
        try:
            self.annotations.place(annotation)
        except Exception as e:
            logger.warning(f"Annotation placement failed for mark '{mark_id}' (handle {location.handle}): {e}")

    def _remove_annotation(self, location: Location) -> None:
        if location.handle is None:
            return
        try:
            self.annotations.remove(location.handle, location.document_id)
        except Exception as e:
            logger.warning(f'Annotation removal failed for handle {location.handle}: {e}')

    # ==========================================================================
    # Persistence
    # ==========================================================================

    def snapshot(self) -> StoreSnapshot:
        """Serializable copy of every entry."""

        def persisted(location: Location) -> PersistedLocation:
            return PersistedLocation(
                document_id=location.document_id,
                line=location.line,
                column=location.column,
                handle=location.handle,
            )

        return StoreSnapshot(
            global_marks={mark_id: persisted(loc) for mark_id, loc in self._global.items()},
            scoped_marks={
                mark_id: {document_id: persisted(loc) for document_id, loc in per_document.items()}
                for mark_id, per_document in self._scoped.items()
                if per_document
            },
        )

    def restore(self, snapshot: StoreSnapshot) -> None:
        """
        Replace the store contents with a snapshot.

        Persisted handles are kept while unique; missing or duplicate handles are
        reallocated. Annotations are not placed here; the lifecycle synchronizer
        places them for documents that are loaded.
        """
        self.clear_all()

        for _mark_id, persisted in self._iter_snapshot(snapshot):
            if persisted.handle is not None:
                self.handles.observe(persisted.handle)

        seen: set[int] = set()
        # Ascending (mark, document) order gives restored entries a deterministic recency
        for mark_id, persisted in self._iter_snapshot(snapshot):
            handle = persisted.handle
            if handle is None or handle in seen:
                handle = self.handles.allocate()
            seen.add(handle)
            self._insert(
                mark_id,
                Location(
                    document_id=persisted.document_id,
                    line=persisted.line,
                    column=persisted.column,
                    handle=handle,
                    sequence=next(self._sequence),
                ),
            )

    # ==========================================================================
    # Internals
    # ==========================================================================

    def _lookup(self, mark_id: str, document_id: int) -> Location | None:
        """Existing location for exactly this (mark, document) pair."""
        if is_scoped_mark(mark_id):
            return self.get_scoped(mark_id, document_id)
        location = self._global.get(mark_id)
        if location is not None and location.document_id == document_id:
            return location
        return None

    def _insert(self, mark_id: str, location: Location) -> None:
        if is_scoped_mark(mark_id):
            self._scoped.setdefault(mark_id, {})[location.document_id] = location
        else:
            self._global[mark_id] = location

    def _iter_entries(self) -> Iterator[tuple[str, Location]]:
        yield from self._global.items()
        for mark_id, per_document in self._scoped.items():
            for location in per_document.values():
                yield mark_id, location

    @staticmethod
    def _iter_snapshot(snapshot: StoreSnapshot) -> Iterator[tuple[str, PersistedLocation]]:
        yield from sorted(snapshot.global_marks.items())
        for mark_id, per_document in sorted(snapshot.scoped_marks.items()):
            for _document_id, persisted in sorted(per_document.items()):
                yield mark_id, persisted
