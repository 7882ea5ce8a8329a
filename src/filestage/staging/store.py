"""Staged record store with change notification."""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from filestage.staging.records import FileRecord, FileStatus

logger = logging.getLogger(__name__)


class StoreEventKind(str, Enum):
    """Kinds of change published by the store."""

    ADDED = "added"  # Batch appended
    REPLACED = "replaced"  # Batch replaced the whole collection
    UPDATED = "updated"  # Status or progress changed
    REMOVED = "removed"
    CLEARED = "cleared"


@dataclass(frozen=True)
class StoreEvent:
    """A change to the staged collection."""

    kind: StoreEventKind
    record_ids: Tuple[str, ...]


StoreListener = Callable[[StoreEvent], None]


class StagingStore:
    """In-memory, insertion-ordered store for staged file records.

    Every read returns copies. Callers that want the latest upload progress
    re-read the store or subscribe to its events.
    """

    def __init__(self):
        self._records: Dict[str, FileRecord] = {}
        self._listeners: List[StoreListener] = []

    def add(self, records: Iterable[FileRecord], multiple: bool = True) -> None:
        """Append records, or replace the whole collection when multiple is False."""
        batch = list(records)
        batch_ids = [record.id for record in batch]
        if len(set(batch_ids)) != len(batch_ids):
            raise ValueError("Duplicate record ids in batch")

        if multiple:
            duplicates = [record_id for record_id in batch_ids if record_id in self._records]
            if duplicates:
                raise ValueError(f"Records already staged: {', '.join(duplicates)}")
            for record in batch:
                self._records[record.id] = _snapshot(record)
            kind = StoreEventKind.ADDED
        else:
            self._records = {record.id: _snapshot(record) for record in batch}
            kind = StoreEventKind.REPLACED

        self._publish(kind, batch_ids)

    def remove(self, record_id: str) -> Optional[FileRecord]:
        """Remove one record. Returns the removed record, or None if absent."""
        record = self._records.pop(record_id, None)
        if record is not None:
            self._publish(StoreEventKind.REMOVED, [record_id])
        return record

    def clear(self) -> int:
        """Remove every record regardless of status. Returns the count removed."""
        removed_ids = list(self._records)
        self._records.clear()
        self._publish(StoreEventKind.CLEARED, removed_ids)
        return len(removed_ids)

    def get(self) -> List[FileRecord]:
        """Snapshot of all records in insertion order."""
        return [_snapshot(record) for record in self._records.values()]

    def get_record(self, record_id: str) -> Optional[FileRecord]:
        """Snapshot of one record, or None if absent."""
        record = self._records.get(record_id)
        return _snapshot(record) if record is not None else None

    def mark_uploading(self, record_id: str) -> Optional[FileRecord]:
        """Move a pending record to uploading."""
        record = self._records.get(record_id)
        if record is None or record.status != FileStatus.PENDING:
            return None
        record.status = FileStatus.UPLOADING
        self._publish(StoreEventKind.UPDATED, [record_id])
        return _snapshot(record)

    def apply_progress(self, record_id: str, progress: float) -> Optional[FileRecord]:
        """Record upload progress for an uploading record.

        Progress is clamped to [0, 100] and never decreases. Reaching 100
        completes the record in the same update.

        Returns:
            Updated snapshot, or None if the record is absent or not uploading
        """
        record = self._records.get(record_id)
        if record is None or record.status != FileStatus.UPLOADING:
            return None

        record.progress = max(record.progress, min(float(progress), 100.0))
        if record.progress >= 100.0:
            record.progress = 100.0
            record.status = FileStatus.COMPLETED

        self._publish(StoreEventKind.UPDATED, [record_id])
        return _snapshot(record)

    def mark_error(self, record_id: str, message: str) -> Optional[FileRecord]:
        """Fail a record that has not reached a terminal status."""
        record = self._records.get(record_id)
        if record is None or record.is_terminal:
            return None
        record.status = FileStatus.ERROR
        record.error = message
        self._publish(StoreEventKind.UPDATED, [record_id])
        return _snapshot(record)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, kind: StoreEventKind, record_ids: Iterable[str]) -> None:
        event = StoreEvent(kind=kind, record_ids=tuple(record_ids))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.error(
                    "Store listener failed",
                    extra={"event_kind": kind.value},
                    exc_info=True,
                )

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records


def _snapshot(record: FileRecord) -> FileRecord:
    return replace(record, tags=list(record.tags))
