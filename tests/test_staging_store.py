"""Tests for the staging store."""

import pytest

from conftest import make_record
from filestage.staging.records import FileStatus
from filestage.staging.store import StoreEventKind


def test_add_appends_in_insertion_order(store):
    """Test that multiple mode appends batches in order."""
    first = [make_record("a.txt"), make_record("b.txt")]
    second = [make_record("c.txt")]

    store.add(first, multiple=True)
    store.add(second, multiple=True)

    assert [r.name for r in store.get()] == ["a.txt", "b.txt", "c.txt"]
    assert len(store) == 3


def test_add_replaces_in_single_batch_mode(store):
    """Test that non-multiple mode replaces the whole collection."""
    store.add([make_record("a.txt"), make_record("b.txt")], multiple=True)

    store.add([make_record("c.txt")], multiple=False)

    assert [r.name for r in store.get()] == ["c.txt"]


def test_add_rejects_duplicate_ids(store):
    """Test that the store never holds two records with one id."""
    record = make_record("a.txt")
    store.add([record])

    with pytest.raises(ValueError, match="already staged"):
        store.add([make_record("copy.txt", id=record.id)])

    with pytest.raises(ValueError, match="Duplicate"):
        store.add([make_record("x.txt", id="same"), make_record("y.txt", id="same")], multiple=False)

    assert len(store) == 1


def test_remove_is_idempotent(store):
    """Test removing a record twice."""
    record = make_record("a.txt")
    store.add([record])

    removed = store.remove(record.id)
    assert removed is not None
    assert removed.id == record.id

    assert store.remove(record.id) is None
    assert record.id not in store


def test_clear_removes_everything(store):
    """Test that clear empties the store regardless of status."""
    records = [make_record("a.txt"), make_record("b.txt")]
    store.add(records)
    store.mark_uploading(records[0].id)

    assert store.clear() == 2
    assert store.get() == []


def test_get_returns_copies(store):
    """Test that reads cannot mutate stored records."""
    record = make_record("a.txt", tags=["draft"])
    store.add([record])

    snapshot = store.get()[0]
    snapshot.progress = 99.0
    snapshot.tags.append("mutated")

    fresh = store.get_record(record.id)
    assert fresh.progress == 0.0
    assert fresh.tags == ["draft"]


def test_progress_is_clamped_and_non_decreasing(store):
    """Test progress updates for an uploading record."""
    record = make_record("a.txt")
    store.add([record])

    assert store.apply_progress(record.id, 10) is None  # still pending

    store.mark_uploading(record.id)
    assert store.apply_progress(record.id, 40).progress == 40
    assert store.apply_progress(record.id, 20).progress == 40

    completed = store.apply_progress(record.id, 140)
    assert completed.progress == 100
    assert completed.status == FileStatus.COMPLETED


def test_completed_record_is_immutable(store):
    """Test that a completed record rejects further updates."""
    record = make_record("a.txt")
    store.add([record])
    store.mark_uploading(record.id)
    store.apply_progress(record.id, 100)

    assert store.apply_progress(record.id, 50) is None
    assert store.mark_error(record.id, "late failure") is None
    assert store.mark_uploading(record.id) is None

    final = store.get_record(record.id)
    assert final.status == FileStatus.COMPLETED
    assert final.progress == 100


def test_mark_error(store):
    """Test the error transition for an uploading record."""
    record = make_record("a.txt")
    store.add([record])
    store.mark_uploading(record.id)

    failed = store.mark_error(record.id, "connection reset")

    assert failed.status == FileStatus.ERROR
    assert failed.error == "connection reset"


def test_mutations_on_missing_records_return_none(store):
    """Test that updates for unknown ids are ignored."""
    assert store.mark_uploading("missing") is None
    assert store.apply_progress("missing", 50) is None
    assert store.mark_error("missing", "boom") is None


def test_subscribe_receives_events(store):
    """Test change notification and unsubscribe."""
    events = []
    unsubscribe = store.subscribe(events.append)

    record = make_record("a.txt")
    store.add([record])
    store.mark_uploading(record.id)
    store.remove(record.id)
    store.clear()
    unsubscribe()
    store.add([make_record("b.txt")])

    assert [e.kind for e in events] == [
        StoreEventKind.ADDED,
        StoreEventKind.UPDATED,
        StoreEventKind.REMOVED,
        StoreEventKind.CLEARED,
    ]
    assert events[0].record_ids == (record.id,)


def test_failing_listener_does_not_break_store(store, caplog):
    """Test that listener errors are logged and swallowed."""

    def _broken(event):
        raise RuntimeError("listener bug")

    seen = []
    store.subscribe(_broken)
    store.subscribe(seen.append)

    store.add([make_record("a.txt")], multiple=False)

    assert len(store) == 1
    assert [e.kind for e in seen] == [StoreEventKind.REPLACED]
    assert "Store listener failed" in caplog.text
