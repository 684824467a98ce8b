"""
Event dispatch - delivers host notifications to handlers one at a time.

The host calls post() from its single event thread. Events are queued and drained in
arrival order; an event posted from inside a handler waits until the current one has
been fully handled, so no two store mutations ever interleave.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from typing import Any, TypeVar

import attrs

__all__ = [
    'DocumentClosed',
    'DocumentEvent',
    'DocumentOpened',
    'DocumentVisible',
    'DocumentWiped',
    'Event',
    'EventDispatcher',
    'MarkChanged',
    'SessionEnding',
]

logger = logging.getLogger(__name__)


# ==============================================================================
# Events
# ==============================================================================


@attrs.define(frozen=True)
class MarkChanged:
    """The host reports that a mark was set or cleared."""

    mark_id: str


@attrs.define(frozen=True)
class DocumentEvent:
    document_id: int


@attrs.define(frozen=True)
class DocumentOpened(DocumentEvent):
    """A document was read into a buffer."""


@attrs.define(frozen=True)
class DocumentVisible(DocumentEvent):
    """A document became visible in a view."""


@attrs.define(frozen=True)
class DocumentClosed(DocumentEvent):
    """A document was deleted from the buffer list."""


@attrs.define(frozen=True)
class DocumentWiped(DocumentEvent):
    """A document was wiped out entirely."""


@attrs.define(frozen=True)
class SessionEnding:
    """The host is about to exit."""


Event = MarkChanged | DocumentEvent | SessionEnding
E = TypeVar('E')


# ==============================================================================
# Dispatcher
# ==============================================================================


class EventDispatcher:
    """
    Single-threaded FIFO dispatch of host events to registered handlers.

    Handlers are matched on the event's exact type or any base class, in
    registration order.
    """

    def __init__(self) -> None:
        self._handlers: list[tuple[type[Any], Callable[[Any], None]]] = []
        self._queue: deque[Any] = deque()
        self._draining = False

    def connect(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        self._handlers.append((event_type, handler))

    def disconnect_all(self) -> None:
        self._handlers.clear()

    def post(self, event: Event) -> None:
        """Queue an event and, unless already draining, handle everything queued."""
        self._queue.append(event)
        if self._draining:
            return

        self._draining = True
        try:
            while self._queue:
                self._deliver(self._queue.popleft())
        finally:
            self._draining = False

    def _deliver(self, event: Any) -> None:
        for event_type, handler in list(self._handlers):
            if not isinstance(event, event_type):
                continue
            try:
                handler(event)
            except Exception:
                # Later events still get delivered; the failure is visible in the log
                logger.exception(f'Handler {getattr(handler, "__qualname__", handler)!r} failed for {event!r}')
