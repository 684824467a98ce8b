"""
Shared protocols for the host editor boundary.

This module contains Protocol definitions used across multiple services.
Having a single source of truth for protocols prevents type incompatibility
issues when the same protocol is defined in multiple modules.

The host (the surrounding editor) owns documents, views, the native mark table,
key bindings and gutter annotations. Everything here is synchronous: the host calls
us on its single event thread and we call it back on the same thread.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import Protocol, runtime_checkable

from global_marks.domain import Annotation, NativePosition

__all__ = [
    'AnnotationSink',
    'HostProtocol',
    'KeyHandler',
    'MarkChangedCallback',
    'Notifier',
    'NullAnnotationSink',
]

MarkChangedCallback = Callable[[str], None]
KeyHandler = Callable[[], None]


class Notifier(Protocol):
    """
    Protocol for user-visible messages.

    Implementations:
    - CLILogger (cli/logger.py): prints to stdout with optional verbose mode
    - host adapters: forward to the editor's message area
    """

    def info(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...


class AnnotationSink(Protocol):
    """Places and removes gutter annotations keyed by handle."""

    def place(self, annotation: Annotation) -> None: ...
    def remove(self, handle: int, document_id: int) -> None: ...


@runtime_checkable
class HostProtocol(Notifier, AnnotationSink, Protocol):
    """Everything the mark services need from the editor."""

    # Documents
    def current_document(self) -> int: ...
    def is_document_loaded(self, document_id: int) -> bool: ...
    def document_name(self, document_id: int) -> str: ...
    def line_count(self, document_id: int) -> int: ...
    def line_text(self, document_id: int, line: int) -> str:
        """Text of a 1-based line within 1..line_count(document_id)."""
        ...

    # Views
    def views(self) -> Iterable[Hashable]: ...
    def current_view(self) -> Hashable | None: ...
    def view_document(self, view: Hashable) -> int: ...
    def focus_view(self, view: Hashable) -> None: ...
    def set_cursor(self, view: Hashable, line: int, column: int) -> None: ...

    # Native marks
    def native_mark(self, mark_id: str) -> NativePosition | None:
        """Live position of a mark; lowercase marks are looked up in the current document."""
        ...

    def clear_native_mark(self, mark_id: str, document_id: int) -> None: ...
    def execute_native_mark_set(self, mark_id: str) -> None:
        """Set a mark at the cursor exactly as the default keystroke would."""
        ...

    # Capability probes; raise CapabilityUnavailableError or NotImplementedError when absent
    def subscribe_mark_changed(self, callback: MarkChangedCallback) -> None: ...
    def register_legacy_mark_hook(self, callback: MarkChangedCallback) -> None: ...

    # Key bindings
    def key_binding(self, key: str) -> object | None:
        """The binding currently installed for key, or None when the default applies."""
        ...

    def bind_key(self, key: str, handler: KeyHandler) -> None: ...
    def unbind_key(self, key: str) -> None: ...
    def read_char(self) -> str | None:
        """Block for the next typed character; None when the user cancelled."""
        ...


class NullAnnotationSink:
    """Annotation sink for headless use (CLI, tests); nothing is drawn."""

    def place(self, annotation: Annotation) -> None:
        pass

    def remove(self, handle: int, document_id: int) -> None:
        pass
