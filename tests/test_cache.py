"""Tests for the in-memory record cache."""
from bookvault.cache import RecordCache
from bookvault.models import Book


def test_replace_all_preserves_order_and_dedups():
    """Test that replace_all discards old contents and keeps first duplicate."""
    cache = RecordCache([Book("old", "Old", "O")])

    cache.replace_all([Book("2", "B", "b"), Book("1", "A", "a"), Book("2", "B dup", "b")])

    assert [b.id for b in cache] == ["2", "1"]
    assert cache.get("2").title == "B"
    assert "old" not in cache


def test_prepend_puts_book_first():
    """Test newest-first ordering."""
    cache = RecordCache([Book("1", "A", "a")])

    cache.prepend(Book("9", "Foo", "Bar"))

    assert len(cache) == 2
    assert cache.snapshot()[0].id == "9"


def test_prepend_existing_id_keeps_ids_unique():
    """Test that prepending a known id moves it to the front."""
    cache = RecordCache([Book("1", "A", "a"), Book("2", "B", "b")])

    cache.prepend(Book("2", "B v2", "b"))

    assert [b.id for b in cache] == ["2", "1"]
    assert cache.get("2").title == "B v2"


def test_remove_by_id():
    """Test removal and the no-op case."""
    cache = RecordCache([Book("1", "A", "a"), Book("2", "B", "b")])

    assert cache.remove_by_id("1") is True
    assert cache.remove_by_id("missing") is False
    assert [b.id for b in cache] == ["2"]


def test_snapshot_is_detached():
    """Test that snapshots do not change with later mutations."""
    cache = RecordCache([Book("1", "A", "a")])
    before = cache.snapshot()

    cache.prepend(Book("2", "B", "b"))

    assert len(before) == 1
    assert isinstance(before, tuple)
