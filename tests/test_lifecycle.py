"""Tests for document lifecycle synchronization."""

from __future__ import annotations

import pytest

from global_marks.config.marks import MarksSettings
from global_marks.services.dispatch import (
    DocumentClosed,
    DocumentOpened,
    DocumentVisible,
    DocumentWiped,
    EventDispatcher,
)
from global_marks.services.lifecycle import LifecycleSynchronizer
from global_marks.services.store import MarkStore
from tests.conftest import FakeHost


@pytest.fixture
def store(host: FakeHost, settings: MarksSettings) -> MarkStore:
    return MarkStore(host, host.current_document, settings)


@pytest.fixture
def dispatcher(host: FakeHost, store: MarkStore) -> EventDispatcher:
    dispatcher = EventDispatcher()
    LifecycleSynchronizer(host, store).connect(dispatcher)
    return dispatcher


@pytest.mark.parametrize('event_type', [DocumentOpened, DocumentVisible])
def test_shown_document_gets_annotations_again(
    event_type: type[DocumentOpened], dispatcher: EventDispatcher, store: MarkStore, host: FakeHost
) -> None:
    """Annotations are view-local; re-showing a document re-places them with the same handles."""
    a = store.register('A', 1, 2, 0)
    b = store.register('b', 1, 3, 0)
    store.register('c', 2, 1, 0)
    host.annotations.clear()  # the host dropped them when the buffer was unloaded

    dispatcher.post(event_type(1))

    assert a is not None and b is not None
    assert set(host.annotations) == {a.handle, b.handle}
    assert store.list_marks() == [('A', 1, 2), ('b', 1, 3), ('c', 2, 1)]


@pytest.mark.parametrize('event_type', [DocumentClosed, DocumentWiped])
def test_gone_document_is_pruned(
    event_type: type[DocumentClosed], dispatcher: EventDispatcher, store: MarkStore, host: FakeHost
) -> None:
    global_mark = store.register('A', 2, 1, 0)
    scoped = store.register('a', 2, 2, 0)
    store.register('a', 1, 4, 0)

    dispatcher.post(event_type(2))

    assert store.list_marks() == [('a', 1, 4)]
    assert global_mark is not None and scoped is not None
    assert (global_mark.handle, 2) in host.removals
    assert (scoped.handle, 2) in host.removals


def test_prune_then_register_allocates_fresh_handle(dispatcher: EventDispatcher, store: MarkStore) -> None:
    """Unset -> Set after a prune is a new lifetime with a new handle."""
    before = store.register('a', 2, 2, 0)
    dispatcher.post(DocumentClosed(2))
    after = store.register('a', 2, 2, 0)

    assert before is not None and after is not None
    assert after.handle != before.handle


def test_refresh_loaded_only_touches_loaded_documents(host: FakeHost, store: MarkStore) -> None:
    store.register('A', 1, 1, 0)
    store.register('B', 7, 1, 0)  # document 7 is not loaded
    host.placements.clear()

    placed = LifecycleSynchronizer(host, store).refresh_loaded()

    assert placed == 1
    assert [a.mark_id for a in host.placements] == ['A']


def test_events_for_unknown_document_are_harmless(dispatcher: EventDispatcher, store: MarkStore) -> None:
    store.register('A', 1, 1, 0)

    dispatcher.post(DocumentVisible(0))
    dispatcher.post(DocumentClosed(42))

    assert store.list_marks() == [('A', 1, 1)]
