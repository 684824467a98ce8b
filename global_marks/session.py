"""
Marks session - the object a host integration constructs at startup.

Owns every service and exposes the operation surface collaborators use:
list, describe, jump, delete, clear, save and restore.

Typical host wiring:

    session = MarksSession(host)
    session.setup()                           # restore + negotiate mark tracking
    session.post(DocumentVisible(bufnr))      # from the host's buffer events
    session.post(SessionEnding())             # from the host's exit hook
"""

from __future__ import annotations

import logging

from global_marks.config.base import get_settings
from global_marks.config.marks import MarksSettings
from global_marks.domain import MarkListing
from global_marks.exceptions import MarkNotFoundError, PersistenceError, UnresolvableMarkError
from global_marks.protocols import HostProtocol
from global_marks.services.codec import LocationCodec
from global_marks.services.dispatch import Event, EventDispatcher, MarkChanged, SessionEnding
from global_marks.services.lifecycle import LifecycleSynchronizer
from global_marks.services.resolver import JumpResolver, ResolvedLocation
from global_marks.services.shim import CapabilityNegotiator, CompatibilityShim, MarkChangeStrategy
from global_marks.services.store import MarkStore
from global_marks.types import is_scoped_mark, normalize_mark

__all__ = ['MarksSession']

logger = logging.getLogger(__name__)


class MarksSession:
    """
    Mark tracking for one host process.

    Construction performs the initial capability negotiation. setup() replaces the
    registry with the persisted one, so entries recorded before it are discarded;
    call it once, before the host starts reporting marks. It then negotiates again,
    which drops the keystroke interceptor if the host has gained a native
    notification in the meantime.
    """

    def __init__(
        self,
        host: HostProtocol,
        settings: MarksSettings | None = None,
        codec: LocationCodec | None = None,
    ) -> None:
        """
        Initialize session.

        Args:
            host: Editor integration
            settings: Explicit settings (default: loaded from environment)
            codec: Persistence codec (default: settings.PERSIST_FILE)
        """
        self.host = host
        self.settings = settings if settings is not None else get_settings(MarksSettings)
        self.codec = codec or LocationCodec(self.settings.PERSIST_FILE)

        self.dispatcher = EventDispatcher()
        self.store = MarkStore(host, host.current_document, self.settings)
        self.resolver = JumpResolver(host, self.store)
        self.lifecycle = LifecycleSynchronizer(host, self.store)
        self.shim = CompatibilityShim(host, self._report_mark, host, key=self.settings.MARK_KEY)
        self.negotiator = CapabilityNegotiator(host, self.shim, self._report_mark)

        self.dispatcher.connect(MarkChanged, lambda event: self.on_mark_set(event.mark_id))
        self.dispatcher.connect(SessionEnding, lambda event: self.close())
        self.lifecycle.connect(self.dispatcher)

        self.negotiator.negotiate()

    @property
    def strategy(self) -> MarkChangeStrategy | None:
        return self.negotiator.strategy

    def setup(self) -> MarkChangeStrategy:
        """Restore persisted marks, then (re)negotiate mark-change tracking."""
        self.restore()
        return self.negotiator.negotiate()

    def close(self) -> None:
        """Persist and detach from the host."""
        self.save()
        self.shim.uninstall()
        self.dispatcher.disconnect_all()

    def post(self, event: Event) -> None:
        """Entry point for every host notification."""
        self.dispatcher.post(event)

    def _report_mark(self, mark: object) -> None:
        # Host callbacks and the shim both land here; hosts may pass non-strings
        self.dispatcher.post(MarkChanged(str(mark) if mark is not None else ''))

    # ==========================================================================
    # Mark tracking
    # ==========================================================================

    def on_mark_set(self, mark: str) -> None:
        """
        Record the host's current position of a mark.

        A cleared host mark (line 0) removes the entry. Scoped marks are always
        recorded against the current document.
        """
        mark_id = normalize_mark(mark)
        if mark_id is None:
            return

        position = self.host.native_mark(mark_id)
        if position is None or position.line <= 0:
            self.store.remove(mark_id)
            return

        document_id = self.host.current_document() if is_scoped_mark(mark_id) else position.document_id
        self.store.register(mark_id, document_id, position.line, position.column)

    # ==========================================================================
    # Operation surface
    # ==========================================================================

    def list_marks(self) -> list[MarkListing]:
        """All marks as (mark_id, document_id, line), sorted."""
        return self.store.list_marks()

    def describe_marks(self) -> list[str]:
        """Human-readable rows for pickers: "A - /path/to/file:12"."""
        rows = []
        for mark_id, document_id, line in self.store.list_marks():
            name = self.host.document_name(document_id) or '[No Name]'
            rows.append(f'{mark_id} - {name}:{line}')
        return rows

    def resolve(self, mark: str) -> ResolvedLocation:
        return self.resolver.resolve(mark)

    def jump(self, mark: str) -> bool:
        """
        Move the cursor to a mark.

        Failures are reported through the host's message area, never raised.

        Returns:
            True if the cursor moved
        """
        try:
            self.resolver.jump(mark)
        except MarkNotFoundError as e:
            self.host.info(str(e))
            return False
        except UnresolvableMarkError as e:
            self.host.warning(str(e))
            return False
        return True

    def delete(self, mark: str, document_id: int | None = None) -> bool:
        """
        Delete a mark from both the host and the store.

        Args:
            mark: Mark identifier
            document_id: Document of a scoped mark (default: current document)

        Returns:
            True if a stored entry was removed
        """
        mark_id = normalize_mark(mark)
        if mark_id is None:
            return False

        stored = None if is_scoped_mark(mark_id) else self.store.get_global(mark_id)
        if stored is not None and document_id is not None and stored.document_id != document_id:
            # A global mark lives in one document; naming another deletes nothing
            return False

        if document_id is not None:
            target = document_id
        elif stored is not None:
            target = stored.document_id
        else:
            target = self.host.current_document()

        self.host.clear_native_mark(mark_id, target)
        return self.store.remove(mark_id, document_id)

    def clear(self) -> int:
        """
        Delete marks whose document is currently loaded; marks in closed documents stay.

        Returns:
            Number of entries removed
        """
        removed = 0
        for mark_id, document_id, _line in self.store.list_marks():
            if not self.host.is_document_loaded(document_id):
                continue
            self.host.clear_native_mark(mark_id, document_id)
            if self.store.remove(mark_id, document_id):
                removed += 1
        return removed

    # ==========================================================================
    # Persistence
    # ==========================================================================

    def save(self) -> bool:
        """Best-effort write of the registry; failures are logged, not raised."""
        try:
            path = self.codec.save(self.store.snapshot())
        except PersistenceError as e:
            logger.warning(f'Marks not saved: {e}')
            return False
        logger.debug(f'Saved {len(self.store)} mark(s) to {path}')
        return True

    def restore(self) -> int:
        """
        Replace the registry with the persisted one and annotate loaded documents.

        An unreadable file keeps the current in-memory registry.

        Returns:
            Number of annotations placed
        """
        try:
            snapshot = self.codec.load()
        except PersistenceError as e:
            logger.warning(f'Marks not restored: {e}')
            return 0
        self.store.restore(snapshot)
        return self.lifecycle.refresh_loaded()
