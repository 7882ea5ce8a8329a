"""File manager query engine.

Derives a filtered, sorted view over a collection of file records and keeps
the multi-select state used while browsing staged or already-sent files.
"""

import inspect
import logging
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import partial
from typing import Any, Callable, List, Optional, Sequence

from filestage.staging.classifier import ALL_CATEGORIES, FILTER_CATEGORIES, format_file_size
from filestage.staging.notifier import NotificationKind, Notifier
from filestage.staging.records import FileRecord
from filestage.staging.store import StoreEvent, StoreEventKind

logger = logging.getLogger(__name__)


class SortKey(str, Enum):
    NAME = "name"
    SIZE = "size"
    DATE = "date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class FileQuery:
    """Search, filter and sort parameters."""

    search_term: str = ""
    filter_category: str = ALL_CATEGORIES
    sort_key: SortKey = SortKey.NAME
    sort_order: SortOrder = SortOrder.ASC

    def __post_init__(self):
        if self.filter_category not in FILTER_CATEGORIES:
            raise ValueError(f"Unknown file category: {self.filter_category}")
        self.sort_key = SortKey(self.sort_key)
        self.sort_order = SortOrder(self.sort_order)


@dataclass
class FileView:
    """Query result plus aggregates computed over the filtered records."""

    files: List[FileRecord]
    selected_ids: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.files)

    @property
    def total_size_bytes(self) -> int:
        return sum(record.size_bytes for record in self.files)

    @property
    def total_size(self) -> str:
        return format_file_size(self.total_size_bytes)

    def is_selected(self, record_id: str) -> bool:
        return record_id in self.selected_ids


def _fold_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _name_key(record: FileRecord):
    # Accents and case only break ties
    return (_fold_accents(record.name), record.name.casefold(), record.name)


def _size_key(record: FileRecord) -> int:
    return record.size_bytes


def _date_key(instant: datetime, record: FileRecord) -> float:
    return _timestamp(record.upload_date or instant)


def apply_query(
    records: Sequence[FileRecord], query: FileQuery, now: Optional[datetime] = None
) -> List[FileRecord]:
    """Filter and sort records.

    Args:
        records: Records in insertion order
        query: Search, filter and sort parameters
        now: Instant used for records without an upload date; defaults to
            the current time, captured once per call

    Returns:
        Matching records in sorted order. Ties keep their insertion order in
        both directions.
    """
    needle = query.search_term.lower()
    matches = [
        record
        for record in records
        if needle in record.name.lower()
        and (query.filter_category == ALL_CATEGORIES or record.category.value == query.filter_category)
    ]

    if query.sort_key == SortKey.NAME:
        key = _name_key
    elif query.sort_key == SortKey.SIZE:
        key = _size_key
    else:
        instant = now or datetime.now(timezone.utc)
        key = partial(_date_key, instant)

    # sorted() stays stable with reverse=True
    return sorted(matches, key=key, reverse=query.sort_order == SortOrder.DESC)


def _timestamp(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


class FileManager:
    """Browsing state over a file collection: query parameters and selection."""

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        on_file_select: Optional[Callable[[FileRecord], Any]] = None,
        on_file_delete: Optional[Callable[[str], Any]] = None,
        on_file_download: Optional[Callable[[FileRecord], Any]] = None,
        allow_multi_select: bool = False,
    ):
        self.notifier = notifier
        self.on_file_select = on_file_select
        self.on_file_delete = on_file_delete
        self.on_file_download = on_file_download
        self.allow_multi_select = allow_multi_select
        self.query = FileQuery()
        self._selected_ids: List[str] = []

    @property
    def selected_ids(self) -> List[str]:
        return list(self._selected_ids)

    def set_search_term(self, search_term: str) -> None:
        self.query.search_term = search_term

    def set_filter_category(self, category: str) -> None:
        if category not in FILTER_CATEGORIES:
            raise ValueError(f"Unknown file category: {category}")
        self.query.filter_category = category

    def set_sort_key(self, sort_key: SortKey | str) -> None:
        self.query.sort_key = SortKey(sort_key)

    def set_sort_order(self, sort_order: SortOrder | str) -> None:
        self.query.sort_order = SortOrder(sort_order)

    def toggle_sort_order(self) -> SortOrder:
        self.query.sort_order = SortOrder.DESC if self.query.sort_order == SortOrder.ASC else SortOrder.ASC
        return self.query.sort_order

    def toggle_selection(self, record_id: str) -> bool:
        """Flip selection for a record. Returns True if it is now selected."""
        if record_id in self._selected_ids:
            self._selected_ids.remove(record_id)
            return False
        self._selected_ids.append(record_id)
        return True

    def clear_selection(self) -> None:
        self._selected_ids.clear()

    def handle_store_event(self, event: StoreEvent) -> None:
        """Drop selected ids whose records have left the store.

        Subscribe this to a StagingStore so removals made elsewhere (the
        staging session, single-batch replacement) never leave dead ids
        selected.
        """
        if event.kind == StoreEventKind.REPLACED:
            # A replacement batch is the whole collection
            staged = set(event.record_ids)
            self._selected_ids = [i for i in self._selected_ids if i in staged]
        elif event.kind in (StoreEventKind.REMOVED, StoreEventKind.CLEARED):
            gone = set(event.record_ids)
            self._selected_ids = [i for i in self._selected_ids if i not in gone]

    def view(self, records: Sequence[FileRecord], now: Optional[datetime] = None) -> FileView:
        """Apply the current query to records."""
        return FileView(files=apply_query(records, self.query, now=now), selected_ids=self.selected_ids)

    async def click(self, record: FileRecord) -> None:
        """Handle a click on a record: toggle selection in multi-select mode, then notify the host."""
        if self.allow_multi_select:
            self.toggle_selection(record.id)
        await _call(self.on_file_select, record)

    async def delete(self, record_id: str) -> None:
        """Delete a record: hand the id to the host and drop it from the selection.

        If the host refuses by raising, the selection is left untouched.
        """
        await _call(self.on_file_delete, record_id)
        if record_id in self._selected_ids:
            self._selected_ids.remove(record_id)
        logger.info("File deleted", extra={"record_id": record_id})
        self._notify("File deleted", "File has been removed from storage")

    async def download(self, record: FileRecord) -> None:
        """Pass a download request to the host; no bytes move here."""
        await _call(self.on_file_download, record)
        self._notify("Download started", f"Downloading {record.name}...")

    def _notify(self, title: str, detail: str) -> None:
        if self.notifier is not None:
            self.notifier.notify(NotificationKind.INFO, title, detail)


async def _call(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    outcome = callback(*args)
    if inspect.isawaitable(outcome):
        await outcome
