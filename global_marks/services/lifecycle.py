"""
Lifecycle synchronizer - keeps store entries and annotations in step with documents.

Annotations are view-local: they vanish when a document is unloaded even though the
store still holds the mark. Opening or showing a document re-places its annotations.
Closing or wiping a document is permanent loss, so its entries are pruned.
"""

from __future__ import annotations

import logging

from global_marks.protocols import HostProtocol
from global_marks.services.dispatch import (
    DocumentClosed,
    DocumentOpened,
    DocumentVisible,
    DocumentWiped,
    EventDispatcher,
)
from global_marks.services.store import MarkStore

__all__ = ['LifecycleSynchronizer']

logger = logging.getLogger(__name__)


class LifecycleSynchronizer:
    """Reacts to document lifecycle events on behalf of the MarkStore."""

    def __init__(self, host: HostProtocol, store: MarkStore) -> None:
        self.host = host
        self.store = store

    def connect(self, dispatcher: EventDispatcher) -> None:
        dispatcher.connect(DocumentOpened, lambda event: self.document_shown(event.document_id))
        dispatcher.connect(DocumentVisible, lambda event: self.document_shown(event.document_id))
        dispatcher.connect(DocumentClosed, lambda event: self.document_gone(event.document_id))
        dispatcher.connect(DocumentWiped, lambda event: self.document_gone(event.document_id))

    def document_shown(self, document_id: int) -> int:
        """
        Re-issue annotation placement for every entry in the document.

        Returns:
            Number of annotations placed
        """
        if document_id <= 0:
            return 0
        entries = self.store.entries_for(document_id)
        for mark_id, location in entries:
            self.store.place_annotation(mark_id, location)
        if entries:
            logger.debug(f'Placed {len(entries)} annotation(s) in document {document_id}')
        return len(entries)

    def document_gone(self, document_id: int) -> int:
        """Prune every entry referencing a document that is gone for good."""
        return self.store.prune(document_id)

    def refresh_loaded(self) -> int:
        """Place annotations for every stored document that is loaded right now."""
        placed = 0
        documents = {row.document_id for row in self.store.list_marks()}
        for document_id in sorted(documents):
            if self.host.is_document_loaded(document_id):
                placed += self.document_shown(document_id)
        return placed
