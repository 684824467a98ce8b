"""
Tests for jump resolution.

The resolver prefers the host's live mark table, falls back to the store, refuses to
open views, and recovers stale columns by looking for the mark glyph.
"""

from __future__ import annotations

import pytest

from global_marks.config.marks import MarksSettings
from global_marks.exceptions import MarkNotFoundError, UnresolvableMarkError
from global_marks.services.resolver import JumpResolver, recover_column
from global_marks.services.store import MarkStore
from tests.conftest import FakeHost


@pytest.fixture
def store(host: FakeHost, settings: MarksSettings) -> MarkStore:
    return MarkStore(host, host.current_document, settings)


@pytest.fixture
def resolver(host: FakeHost, store: MarkStore) -> JumpResolver:
    return JumpResolver(host, store)


@pytest.mark.parametrize(
    ('text', 'column', 'glyph', 'expected'),
    [
        ('xMxMx', 10, 'M', 3),  # nearest occurrence to an out-of-range column
        ('xMxMx', 2, 'M', 2),  # in range: trusted as is
        ('MxxxM', 6, 'M', 4),
        ('MxM', 5, 'M', 2),
        ('abc', 9, 'M', 2),  # no occurrence: clamp to last byte
        ('', 3, 'M', 0),
        ('', 0, 'M', 0),
        ('éM', 5, 'M', 2),  # byte offsets, not characters
    ],
)
def test_recover_column(text: str, column: int, glyph: str, expected: int) -> None:
    assert recover_column(text, column, glyph) == expected


def test_recover_column_negative_column_scans() -> None:
    assert recover_column('MxxM', -2, 'M') == 0


def test_live_host_position_is_authoritative(resolver: JumpResolver, store: MarkStore, host: FakeHost) -> None:
    """The host saw edits the store did not: its line wins and is written back."""
    store.register('A', 1, 2, 0)
    host.set_native('A', 1, 4, 1)

    target = resolver.resolve('A')

    assert (target.document_id, target.line, target.column, target.source) == (1, 4, 1, 'host')
    assert store.list_marks() == [('A', 1, 4)]


def test_host_mark_in_closed_document_is_not_revived(
    resolver: JumpResolver, store: MarkStore, host: FakeHost
) -> None:
    """The host keeps file marks for closed documents; the pruned entry must stay gone."""
    host.open(3, ['gone'], name='/work/gone.py', view='third')
    host.press('m', 'A')
    store.register('A', 3, 1, 0)
    host.unload(3)
    store.prune(3)
    host.placements.clear()
    assert host.native_mark('A') is not None

    with pytest.raises(UnresolvableMarkError):
        resolver.resolve('A')

    assert store.list_marks() == []
    assert host.placements == []


def test_register_then_resolve_returns_line(resolver: JumpResolver, store: MarkStore, host: FakeHost) -> None:
    store.register('B', 2, 3, 0)
    host.set_native('B', 2, 3, 0)

    assert resolver.resolve('B').line == 3


def test_falls_back_to_store_when_host_forgot(resolver: JumpResolver, store: MarkStore) -> None:
    store.register('C', 2, 2, 1)

    target = resolver.resolve('C')

    assert (target.document_id, target.line, target.column, target.source) == (2, 2, 1, 'store')
    assert target.view == 'right'


def test_not_found(resolver: JumpResolver) -> None:
    with pytest.raises(MarkNotFoundError) as exc_info:
        resolver.resolve('Q')

    assert exc_info.value.mark_id == 'Q'


def test_document_without_view_is_unresolvable(resolver: JumpResolver, store: MarkStore, host: FakeHost) -> None:
    """A stored mark whose document has no view is Unresolvable, not NotFound."""
    host.open(3, ['hidden'], name='/work/hidden.py')
    store.register('H', 3, 1, 0)

    with pytest.raises(UnresolvableMarkError) as exc_info:
        resolver.resolve('H')

    assert exc_info.value.document_id == 3
    assert exc_info.value.document_name == '/work/hidden.py'
    assert 'hidden.py' in str(exc_info.value)


def test_scoped_prefers_current_document(resolver: JumpResolver, store: MarkStore) -> None:
    store.register('a', 2, 3, 0)
    store.register('a', 1, 2, 0)
    store.register('a', 2, 1, 0)  # most recent, but not the current document

    assert resolver.resolve('a').document_id == 1


def test_scoped_elsewhere_picks_most_recent_loaded(resolver: JumpResolver, store: MarkStore, host: FakeHost) -> None:
    host.open(3, ['one', 'two'], view='third')
    host.focus_view('left')
    store.register('b', 3, 2, 0)
    store.register('b', 2, 1, 0)
    store.register('b', 4, 1, 0)  # most recent, but document 4 is not loaded

    target = resolver.resolve('b')

    assert target.document_id == 2
    assert target.view == 'right'


def test_scoped_only_in_unloaded_document_is_unresolvable(resolver: JumpResolver, store: MarkStore) -> None:
    store.register('c', 9, 1, 0)

    with pytest.raises(UnresolvableMarkError):
        resolver.resolve('c')


def test_stale_column_recovered_from_glyph(resolver: JumpResolver, store: MarkStore) -> None:
    store.register('M', 1, 2, 10)

    target = resolver.resolve('M')

    assert (target.line, target.column) == (2, 3)


def test_line_past_end_is_clamped(resolver: JumpResolver, store: MarkStore) -> None:
    store.register('L', 2, 40, 0)

    assert resolver.resolve('L').line == 3


def test_current_view_preferred_when_document_shown_twice(resolver: JumpResolver, store: MarkStore, host: FakeHost) -> None:
    host.view_documents['other'] = 1
    host.cursors['other'] = (1, 0)
    host.focus_view('other')
    store.register('A', 1, 2, 0)

    assert resolver.resolve('A').view == 'other'


def test_jump_moves_cursor_and_focus(resolver: JumpResolver, store: MarkStore, host: FakeHost) -> None:
    store.register('J', 2, 2, 3)

    resolver.jump('J')

    assert host.active_view == 'right'
    assert host.cursors['right'] == (2, 3)


def test_jump_never_opens_views(resolver: JumpResolver, store: MarkStore, host: FakeHost) -> None:
    host.open(5, ['x'])
    store.register('V', 5, 1, 0)
    views_before = dict(host.view_documents)

    with pytest.raises(UnresolvableMarkError):
        resolver.jump('V')

    assert host.view_documents == views_before
