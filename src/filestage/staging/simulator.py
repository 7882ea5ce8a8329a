"""Per-record upload tasks driving the staging state machine.

Each staged record gets its own asyncio task that moves it
pending -> uploading -> completed while the transport reports progress.
Tasks are independent; two records started together may finish in any
order. Removal from the store is authoritative: every update re-checks that
the record is still staged and the task quietly stops once it is gone.
"""

import asyncio
import logging
from functools import partial
from typing import Dict, Iterable, List, Optional

from filestage.staging.exceptions import StaleMutation, TransportError
from filestage.staging.notifier import NotificationKind, Notifier
from filestage.staging.records import FileStatus
from filestage.staging.store import StagingStore
from filestage.staging.transport import SimulatedTransport, Transport

logger = logging.getLogger(__name__)


class UploadTask:
    """Handle for one record's upload."""

    def __init__(self, record_id: str, task: "asyncio.Task[Optional[FileStatus]]"):
        self.record_id = record_id
        self._task = task

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> bool:
        return self._task.cancel()

    async def wait(self) -> Optional[FileStatus]:
        """Wait for the upload to settle.

        Returns:
            Final status, or None if the record was removed or the task cancelled
        """
        await asyncio.wait({self._task})
        if self._task.cancelled():
            return None
        return self._task.result()


class UploadSimulator:
    """Schedules and tracks upload tasks for records in a StagingStore."""

    def __init__(
        self,
        store: StagingStore,
        transport: Optional[Transport] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.transport = transport or SimulatedTransport()
        self.notifier = notifier
        self._tasks: Dict[str, UploadTask] = {}

    def start(self, record_id: str) -> UploadTask:
        """Start uploading a pending record. Must be called from a running event loop."""
        existing = self._tasks.get(record_id)
        if existing is not None and not existing.done():
            return existing

        task = asyncio.get_running_loop().create_task(
            self._run(record_id), name=f"upload-{record_id}"
        )
        upload_task = UploadTask(record_id, task)
        self._tasks[record_id] = upload_task
        task.add_done_callback(partial(self._forget, upload_task))
        return upload_task

    def start_batch(self, record_ids: Iterable[str]) -> List[UploadTask]:
        return [self.start(record_id) for record_id in record_ids]

    async def join(self, tasks: Iterable[UploadTask]) -> List[Optional[FileStatus]]:
        """Wait for every task of a batch to settle."""
        return list(await asyncio.gather(*(task.wait() for task in tasks)))

    def get_task(self, record_id: str) -> Optional[UploadTask]:
        return self._tasks.get(record_id)

    def cancel(self, record_id: str) -> bool:
        """Stop a record's upload. Returns True if a running task was cancelled."""
        upload_task = self._tasks.get(record_id)
        if upload_task is None or upload_task.done():
            return False
        return upload_task.cancel()

    def cancel_all(self) -> int:
        """Stop every running upload. Returns the number cancelled."""
        return sum(1 for record_id in list(self._tasks) if self.cancel(record_id))

    @property
    def active_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def _forget(self, upload_task: UploadTask, _task: asyncio.Task) -> None:
        if self._tasks.get(upload_task.record_id) is upload_task:
            del self._tasks[upload_task.record_id]

    async def _run(self, record_id: str) -> Optional[FileStatus]:
        record = self.store.mark_uploading(record_id)
        if record is None:
            logger.debug("Record no longer pending, upload skipped", extra={"record_id": record_id})
            return None

        def _report(progress: float) -> None:
            if self.store.apply_progress(record_id, progress) is None:
                raise StaleMutation(record_id)

        try:
            await self.transport.transfer(record, _report)
        except StaleMutation:
            # Removal raced a background tick
            logger.debug("Discarding progress for removed record", extra={"record_id": record_id})
            return None
        except TransportError as e:
            failed = self.store.mark_error(record_id, str(e))
            if failed is None:
                return None
            logger.error(
                "Upload failed",
                extra={
                    "record_id": record_id,
                    "file_name": record.name,
                    "transport": self.transport.get_transport_name(),
                    "error": str(e),
                },
            )
            if self.notifier is not None:
                self.notifier.notify(NotificationKind.ERROR, "Upload failed", f"{record.name}: {e}")
            return FileStatus.ERROR

        final = self.store.get_record(record_id)
        if final is None:
            return None
        if final.status == FileStatus.UPLOADING:
            # Transport finished without reporting 100
            final = self.store.apply_progress(record_id, 100.0) or final

        logger.debug(
            "Upload settled",
            extra={"record_id": record_id, "status": final.status.value},
        )
        return final.status
