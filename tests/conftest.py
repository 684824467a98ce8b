"""
Shared fixtures: a scripted in-memory editor host.

FakeHost keeps just enough editor state to exercise the mark services: documents
with lines, views showing documents, a native mark table, key bindings and the
annotations placed in the gutter.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from global_marks.config.marks import MarksSettings
from global_marks.domain import Annotation, NativePosition
from global_marks.exceptions import CapabilityUnavailableError
from global_marks.session import MarksSession


class FakeHost:
    """HostProtocol implementation backed by plain dicts."""

    def __init__(self, *, native_event: bool = True, legacy_hook: bool = False) -> None:
        self.native_event = native_event
        self.legacy_hook = legacy_hook

        self.lines: dict[int, list[str]] = {}
        self.names: dict[int, str] = {}
        self.loaded: set[int] = set()
        self.view_documents: dict[str, int] = {}
        self.active_view: str | None = None
        self.cursors: dict[str, tuple[int, int]] = {}

        self.global_marks: dict[str, NativePosition] = {}
        self.local_marks: dict[int, dict[str, NativePosition]] = {}
        self.mark_callbacks: list[Callable[[str], None]] = []

        self.annotations: dict[int, Annotation] = {}
        self.placements: list[Annotation] = []
        self.removals: list[tuple[int, int]] = []
        self.messages: list[tuple[str, str]] = []

        self.bindings: dict[str, object] = {}
        self.typed: deque[str] = deque()

    # -- scripting helpers ------------------------------------------------------

    def open(self, document_id: int, lines: Iterable[str], name: str = '', view: str | None = None) -> None:
        """Load a document and, when view is given, show it there and focus it."""
        self.lines[document_id] = list(lines)
        self.names[document_id] = name
        self.loaded.add(document_id)
        if view is not None:
            self.view_documents[view] = document_id
            self.cursors[view] = (1, 0)
            self.active_view = view

    def close_view(self, view: str) -> None:
        self.view_documents.pop(view, None)
        self.cursors.pop(view, None)
        if self.active_view == view:
            self.active_view = next(iter(self.view_documents), None)

    def unload(self, document_id: int) -> None:
        self.loaded.discard(document_id)
        for view in [v for v, d in self.view_documents.items() if d == document_id]:
            self.close_view(view)

    def move_cursor(self, line: int, column: int) -> None:
        assert self.active_view is not None
        self.cursors[self.active_view] = (line, column)

    def press(self, key: str, char: str) -> None:
        """Type `key` followed by `char`, honouring any installed binding."""
        binding = self.bindings.get(key)
        if callable(binding):
            self.typed.append(char)
            binding()
            return
        # Default behaviour: set the mark and emit the native notification
        self.execute_native_mark_set(char)
        for callback in list(self.mark_callbacks):
            callback(char)

    def set_native(self, mark_id: str, document_id: int, line: int, column: int = 0) -> None:
        """Change the host mark table behind the services' back (e.g. after edits)."""
        position = NativePosition(document_id=document_id, line=line, column=column)
        if mark_id.islower():
            self.local_marks.setdefault(document_id, {})[mark_id] = position
        else:
            self.global_marks[mark_id] = position

    # -- documents --------------------------------------------------------------

    def current_document(self) -> int:
        if self.active_view is None:
            return 0
        return self.view_documents[self.active_view]

    def is_document_loaded(self, document_id: int) -> bool:
        return document_id in self.loaded

    def document_name(self, document_id: int) -> str:
        return self.names.get(document_id, '')

    def line_count(self, document_id: int) -> int:
        return len(self.lines.get(document_id, []))

    def line_text(self, document_id: int, line: int) -> str:
        lines = self.lines.get(document_id, [])
        return lines[line - 1] if 0 < line <= len(lines) else ''

    # -- views ------------------------------------------------------------------

    def views(self) -> list[str]:
        return list(self.view_documents)

    def current_view(self) -> str | None:
        return self.active_view

    def view_document(self, view: str) -> int:
        return self.view_documents[view]

    def focus_view(self, view: str) -> None:
        self.active_view = view

    def set_cursor(self, view: str, line: int, column: int) -> None:
        self.cursors[view] = (line, column)

    # -- native marks -----------------------------------------------------------

    def native_mark(self, mark_id: str) -> NativePosition | None:
        if mark_id.islower():
            return self.local_marks.get(self.current_document(), {}).get(mark_id)
        return self.global_marks.get(mark_id)

    def clear_native_mark(self, mark_id: str, document_id: int) -> None:
        if mark_id.islower():
            self.local_marks.get(document_id, {}).pop(mark_id, None)
        else:
            self.global_marks.pop(mark_id, None)

    def execute_native_mark_set(self, mark_id: str) -> None:
        assert self.active_view is not None
        line, column = self.cursors[self.active_view]
        self.set_native(mark_id, self.current_document(), line, column)

    def subscribe_mark_changed(self, callback: Callable[[str], None]) -> None:
        if not self.native_event:
            raise CapabilityUnavailableError('MarkSet event')
        self.mark_callbacks.append(callback)

    def register_legacy_mark_hook(self, callback: Callable[[str], None]) -> None:
        if not self.legacy_hook:
            raise NotImplementedError('no legacy autocmd support')
        self.mark_callbacks.append(callback)

    # -- key bindings -----------------------------------------------------------

    def key_binding(self, key: str) -> object | None:
        return self.bindings.get(key)

    def bind_key(self, key: str, handler: Callable[[], None]) -> None:
        self.bindings[key] = handler

    def unbind_key(self, key: str) -> None:
        self.bindings.pop(key, None)

    def read_char(self) -> str | None:
        return self.typed.popleft() if self.typed else None

    # -- annotations and messages -----------------------------------------------

    def place(self, annotation: Annotation) -> None:
        self.annotations[annotation.handle] = annotation
        self.placements.append(annotation)

    def remove(self, handle: int, document_id: int) -> None:
        self.annotations.pop(handle, None)
        self.removals.append((handle, document_id))

    def info(self, message: str) -> None:
        self.messages.append(('info', message))

    def warning(self, message: str) -> None:
        self.messages.append(('warning', message))

    def error(self, message: str) -> None:
        self.messages.append(('error', message))


@pytest.fixture
def settings(tmp_path: Path) -> MarksSettings:
    return MarksSettings(_env_file=None, PERSIST_FILE=tmp_path / 'global_marks.json')


@pytest.fixture
def host() -> FakeHost:
    """Two documents, each shown in its own view; view 'left' is focused."""
    fake = FakeHost()
    fake.open(2, ['second doc', 'beta line', 'gamma'], name='/work/b.py', view='right')
    fake.open(1, ['alpha', 'xMxMx', 'third line', 'fourth'], name='/work/a.py', view='left')
    return fake


@pytest.fixture
def session(host: FakeHost, settings: MarksSettings) -> MarksSession:
    return MarksSession(host, settings=settings)


@pytest.fixture
def make_host() -> Callable[..., FakeHost]:
    """Factory for hosts with specific capabilities."""
    return FakeHost
