"""Tests for the file manager query engine."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_record
from filestage.query.file_manager import FileManager, FileQuery, SortKey, SortOrder, apply_query
from filestage.staging.notifier import NotificationKind
from filestage.staging.store import StagingStore

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mixed_records():
    return [
        make_record("Quarterly Report.pdf", 300, "application/pdf"),
        make_record("diagram.png", 200, "image/png"),
        make_record("minutes.docx", 100, "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
    ]


def test_filter_document_excludes_pdf(mixed_records):
    """Test that pdf and document are distinct categories."""
    result = apply_query(mixed_records, FileQuery(filter_category="document"))

    assert [r.name for r in result] == ["minutes.docx"]


def test_filter_all_keeps_everything(mixed_records):
    result = apply_query(mixed_records, FileQuery(filter_category="all"))

    assert len(result) == 3


def test_unknown_category_is_rejected():
    with pytest.raises(ValueError, match="Unknown file category"):
        FileQuery(filter_category="spreadsheet")


def test_search_is_case_insensitive(mixed_records):
    """Test substring search over names."""
    result = apply_query(mixed_records, FileQuery(search_term="REPORT"))

    assert [r.name for r in result] == ["Quarterly Report.pdf"]


def test_search_and_filter_combine(mixed_records):
    result = apply_query(mixed_records, FileQuery(search_term="m", filter_category="image"))

    assert [r.name for r in result] == ["diagram.png"]


def test_sort_by_size_and_reverse():
    """Test numeric size sort in both directions."""
    records = [make_record("a", 50), make_record("b", 10), make_record("c", 30)]

    ascending = apply_query(records, FileQuery(sort_key=SortKey.SIZE))
    descending = apply_query(records, FileQuery(sort_key=SortKey.SIZE, sort_order=SortOrder.DESC))

    assert [r.size_bytes for r in ascending] == [10, 30, 50]
    assert [r.size_bytes for r in descending] == [50, 30, 10]


def test_size_ties_keep_insertion_order_both_ways():
    """Test that the sort is stable in either direction."""
    records = [make_record("first", 10), make_record("big", 99), make_record("second", 10)]

    ascending = apply_query(records, FileQuery(sort_key="size"))
    descending = apply_query(records, FileQuery(sort_key="size", sort_order="desc"))

    assert [r.name for r in ascending] == ["first", "second", "big"]
    assert [r.name for r in descending] == ["big", "first", "second"]


def test_sort_by_name_ignores_case():
    records = [make_record("cherry.txt"), make_record("Apple.txt"), make_record("banana.txt")]

    result = apply_query(records, FileQuery(sort_key=SortKey.NAME))

    assert [r.name for r in result] == ["Apple.txt", "banana.txt", "cherry.txt"]


def test_sort_by_name_places_accented_names_with_their_base_letter():
    records = [make_record("zebra.txt"), make_record("Éclair.txt"), make_record("apple.txt")]

    ascending = apply_query(records, FileQuery(sort_key=SortKey.NAME))
    descending = apply_query(records, FileQuery(sort_key=SortKey.NAME, sort_order=SortOrder.DESC))

    assert [r.name for r in ascending] == ["apple.txt", "Éclair.txt", "zebra.txt"]
    assert [r.name for r in descending] == ["zebra.txt", "Éclair.txt", "apple.txt"]


def test_sort_by_name_breaks_accent_ties_deterministically():
    records = [make_record("résumé.pdf"), make_record("resume.pdf")]

    result = apply_query(records, FileQuery(sort_key=SortKey.NAME))

    assert [r.name for r in result] == ["resume.pdf", "résumé.pdf"]


def test_sort_by_date_treats_undated_as_now():
    """Test that undated records take the query instant."""
    records = [
        make_record("undated.txt"),
        make_record("new.txt", upload_date=NOW - timedelta(days=1)),
        make_record("old.txt", upload_date=NOW - timedelta(days=30)),
        make_record("future.txt", upload_date=NOW + timedelta(days=1)),
    ]

    result = apply_query(records, FileQuery(sort_key=SortKey.DATE), now=NOW)

    assert [r.name for r in result] == ["old.txt", "new.txt", "undated.txt", "future.txt"]


def test_sort_by_date_accepts_naive_datetimes():
    records = [
        make_record("b.txt", upload_date=datetime(2024, 2, 1)),
        make_record("a.txt", upload_date=datetime(2024, 1, 1)),
    ]

    result = apply_query(records, FileQuery(sort_key=SortKey.DATE), now=NOW)

    assert [r.name for r in result] == ["a.txt", "b.txt"]


def test_query_is_idempotent(mixed_records):
    """Test that the same query over the same records gives the same output."""
    query = FileQuery(search_term="", filter_category="all", sort_key=SortKey.DATE, sort_order=SortOrder.DESC)

    first = apply_query(mixed_records, query, now=NOW)
    second = apply_query(mixed_records, query, now=NOW)

    assert [r.id for r in first] == [r.id for r in second]


def test_view_aggregates_over_filtered_records(mixed_records):
    """Test count and total size of the view, not the full collection."""
    manager = FileManager()
    manager.set_filter_category("image")

    view = manager.view(mixed_records)

    assert view.count == 1
    assert view.total_size_bytes == 200
    assert view.total_size == "200 Bytes"


def test_selection_persists_across_query_changes(mixed_records):
    """Test that selection is independent of filter and sort."""
    manager = FileManager(allow_multi_select=True)
    target = mixed_records[0]

    assert manager.toggle_selection(target.id) is True
    manager.set_filter_category("image")
    manager.set_sort_key("size")
    manager.toggle_sort_order()
    view = manager.view(mixed_records)

    assert target.id not in [r.id for r in view.files]
    assert view.selected_ids == [target.id]

    manager.set_filter_category("all")
    assert manager.view(mixed_records).is_selected(target.id)

    assert manager.toggle_selection(target.id) is False
    assert manager.selected_ids == []


def test_toggle_sort_order():
    manager = FileManager()

    assert manager.toggle_sort_order() == SortOrder.DESC
    assert manager.toggle_sort_order() == SortOrder.ASC


def test_clear_selection(mixed_records):
    manager = FileManager()
    for record in mixed_records:
        manager.toggle_selection(record.id)

    manager.clear_selection()

    assert manager.selected_ids == []


def test_set_filter_category_validates():
    manager = FileManager()

    with pytest.raises(ValueError):
        manager.set_filter_category("spreadsheets")


@pytest.mark.asyncio
async def test_click_toggles_selection_in_multi_select_mode(mixed_records):
    """Test click behaviour with and without multi-select."""
    on_file_select = MagicMock()
    multi = FileManager(on_file_select=on_file_select, allow_multi_select=True)
    single = FileManager(on_file_select=on_file_select, allow_multi_select=False)

    await multi.click(mixed_records[1])
    await single.click(mixed_records[1])

    assert multi.selected_ids == [mixed_records[1].id]
    assert single.selected_ids == []
    assert on_file_select.call_count == 2


@pytest.mark.asyncio
async def test_delete_purges_selection_and_notifies(mixed_records, notifier):
    """Test that deletion drops the id from the selection and calls the host."""
    on_file_delete = AsyncMock()
    manager = FileManager(notifier=notifier, on_file_delete=on_file_delete)
    target = mixed_records[2]
    manager.toggle_selection(target.id)

    await manager.delete(target.id)

    assert manager.selected_ids == []
    on_file_delete.assert_awaited_once_with(target.id)
    [notification] = notifier.pending()
    assert notification.kind == NotificationKind.INFO
    assert notification.title == "File deleted"


@pytest.mark.asyncio
async def test_download_is_a_pass_through(mixed_records, notifier):
    on_file_download = MagicMock()
    manager = FileManager(notifier=notifier, on_file_download=on_file_download)

    await manager.download(mixed_records[1])

    on_file_download.assert_called_once_with(mixed_records[1])
    [notification] = notifier.pending()
    assert notification.title == "Download started"
    assert notification.detail == "Downloading diagram.png..."


@pytest.fixture
def followed_store(mixed_records):
    """Store holding mixed_records, followed by a manager with everything selected."""
    store = StagingStore()
    store.add(mixed_records)
    manager = FileManager()
    store.subscribe(manager.handle_store_event)
    for record in mixed_records:
        manager.toggle_selection(record.id)
    return store, manager


def test_store_removal_drops_selection(followed_store, mixed_records):
    store, manager = followed_store

    store.remove(mixed_records[0].id)

    assert manager.selected_ids == [mixed_records[1].id, mixed_records[2].id]


def test_store_clear_drops_selection(followed_store):
    store, manager = followed_store

    store.clear()

    assert manager.selected_ids == []


def test_store_replacement_keeps_only_new_batch_selection(followed_store):
    """Test that a replacing batch evicts selected ids of the superseded records."""
    store, manager = followed_store
    replacement = make_record("new.txt")
    manager.toggle_selection(replacement.id)

    store.add([replacement], multiple=False)

    assert manager.selected_ids == [replacement.id]


def test_progress_updates_keep_selection(followed_store, mixed_records):
    store, manager = followed_store

    store.mark_uploading(mixed_records[0].id)
    store.apply_progress(mixed_records[0].id, 40.0)

    assert len(manager.selected_ids) == 3


@pytest.mark.asyncio
async def test_refused_delete_keeps_selection(mixed_records, notifier):
    """Test that a host refusing the delete leaves selection and notifications alone."""
    on_file_delete = MagicMock(side_effect=PermissionError("read only"))
    manager = FileManager(notifier=notifier, on_file_delete=on_file_delete)
    manager.toggle_selection(mixed_records[0].id)

    with pytest.raises(PermissionError):
        await manager.delete(mixed_records[0].id)

    assert manager.selected_ids == [mixed_records[0].id]
    assert notifier.pending() == []
