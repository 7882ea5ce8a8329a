"""Staging session: validate, preview, stage and upload batches of files."""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence
from uuid import uuid4

from pydantic import BaseModel, Field

from filestage.core.config import Settings, settings
from filestage.core.logging import batch_id_context
from filestage.staging.exceptions import ManagementDisabledError, OversizeRejected
from filestage.staging.notifier import InMemoryNotifier, NotificationKind, Notifier
from filestage.staging.preview import generate_preview
from filestage.staging.records import FileRecord, FileStatus, RawFile
from filestage.staging.simulator import UploadSimulator
from filestage.staging.store import StagingStore
from filestage.staging.transport import SimulatedTransport, Transport
from filestage.staging.validator import ensure_valid

logger = logging.getLogger(__name__)

FileSelectCallback = Callable[[List[FileRecord]], Any]


class StagingConfig(BaseModel):
    """Options fixed at the start of a staging session."""

    accepted_mime_patterns: set[str] = Field(
        default_factory=set, description="Advisory picker filter, never enforced"
    )
    max_file_size_bytes: int = Field(..., gt=0, description="Largest accepted file size")
    allow_multiple_files: bool = Field(True, description="Append batches instead of replacing")
    enable_previews: bool = Field(True, description="Generate inline image previews")
    enable_management_controls: bool = Field(True, description="Allow remove and clear-all")

    @classmethod
    def from_settings(cls, source: Settings) -> "StagingConfig":
        return cls(
            accepted_mime_patterns=source.accepted_mime_patterns,
            max_file_size_bytes=source.max_file_size_bytes,
            allow_multiple_files=source.ALLOW_MULTIPLE_FILES,
            enable_previews=source.ENABLE_PREVIEWS,
            enable_management_controls=source.ENABLE_FILE_MANAGEMENT,
        )


@dataclass
class StagingResult:
    """Outcome of one staged batch."""

    batch_id: str
    staged: List[FileRecord] = field(default_factory=list)
    rejected: List[OversizeRejected] = field(default_factory=list)


class StagingSession:
    """Owns one staged collection and the uploads running against it."""

    def __init__(
        self,
        config: StagingConfig,
        notifier: Notifier,
        store: Optional[StagingStore] = None,
        transport: Optional[Transport] = None,
        on_file_select: Optional[FileSelectCallback] = None,
    ):
        self.config = config
        self.notifier = notifier
        self.store = store or StagingStore()
        self.simulator = UploadSimulator(self.store, transport=transport, notifier=notifier)
        self.on_file_select = on_file_select
        self._active_batches = 0

    @property
    def is_uploading(self) -> bool:
        return self._active_batches > 0

    async def stage_files(self, files: Sequence[RawFile]) -> StagingResult:
        """Stage a batch and wait until every upload in it settles.

        Oversized files are rejected with an error notification and never
        enter the store. Accepted files are previewed concurrently, staged as
        pending, then uploaded. ``on_file_select`` fires once with the batch
        records still staged after the join.
        """
        result = StagingResult(batch_id=uuid4().hex[:12])
        token = batch_id_context.set(result.batch_id)
        try:
            accepted: List[RawFile] = []
            for file in files:
                try:
                    accepted.append(ensure_valid(file, self.config.max_file_size_bytes))
                except OversizeRejected as e:
                    logger.info(
                        "File rejected",
                        extra={"file_name": file.name, "size_bytes": file.size_bytes},
                    )
                    result.rejected.append(e)
                    self.notifier.notify(NotificationKind.ERROR, "File too large", str(e))

            if not accepted:
                return result

            self._active_batches += 1
            try:
                records = await self._build_records(accepted)
                superseded = [] if self.config.allow_multiple_files else [r.id for r in self.store.get()]
                self.store.add(records, multiple=self.config.allow_multiple_files)
                for record_id in superseded:
                    self.simulator.cancel(record_id)

                logger.info(
                    "Batch staged",
                    extra={"accepted": len(records), "rejected": len(result.rejected)},
                )

                tasks = self.simulator.start_batch(record.id for record in records)
                await self.simulator.join(tasks)
            finally:
                self._active_batches -= 1

            for record in records:
                current = self.store.get_record(record.id)
                if current is not None:
                    result.staged.append(current)

            if not result.staged:
                # Removed or replaced by a later batch before finishing
                logger.info("Batch superseded, nothing left to report")
                return result

            if self.on_file_select is not None:
                outcome = self.on_file_select(list(result.staged))
                if inspect.isawaitable(outcome):
                    await outcome

            completed = [r for r in result.staged if r.status == FileStatus.COMPLETED]
            self.notifier.notify(
                NotificationKind.INFO,
                "Upload completed",
                f"{len(completed)} file(s) uploaded successfully",
            )
            logger.info("Batch upload completed", extra={"completed": len(completed)})
            return result
        finally:
            batch_id_context.reset(token)

    def list_files(self) -> List[FileRecord]:
        return self.store.get()

    def remove_file(self, record_id: str) -> Optional[FileRecord]:
        """Remove one record from the staged set. Returns None if it was not staged."""
        self.require_management()
        removed = self.store.remove(record_id)
        self.simulator.cancel(record_id)
        if removed is None:
            return None

        logger.info("File removed", extra={"record_id": record_id, "file_name": removed.name})
        self.notifier.notify(
            NotificationKind.INFO, "File removed", "File has been removed from the upload queue"
        )
        return removed

    def clear_all(self) -> int:
        """Remove every staged record, including ones still uploading."""
        self.require_management()
        count = self.store.clear()
        self.simulator.cancel_all()
        logger.info("All files cleared", extra={"removed": count})
        self.notifier.notify(NotificationKind.INFO, "All files cleared", "All files have been removed")
        return count

    async def _build_records(self, files: Sequence[RawFile]) -> List[FileRecord]:
        if self.config.enable_previews:
            previews = await asyncio.gather(*(generate_preview(file) for file in files))
        else:
            previews = [None] * len(files)

        return [
            FileRecord(
                name=file.name,
                size_bytes=file.size_bytes,
                mime_type=file.mime_type,
                preview=preview,
            )
            for file, preview in zip(files, previews)
        ]

    def require_management(self) -> None:
        """Raise ManagementDisabledError unless remove and clear are allowed."""
        if not self.config.enable_management_controls:
            raise ManagementDisabledError("File management controls are disabled")


_session: Optional[StagingSession] = None


def get_staging_session() -> StagingSession:
    """Get or create the process-wide staging session from settings."""
    global _session
    if _session is None:
        _session = StagingSession(
            config=StagingConfig.from_settings(settings),
            notifier=InMemoryNotifier(max_size=settings.NOTIFICATION_BUFFER_SIZE),
            transport=SimulatedTransport(
                tick_interval=settings.upload_tick_interval_seconds,
                max_increment=settings.UPLOAD_MAX_INCREMENT,
            ),
        )
    return _session


def reset_staging_session() -> None:
    """Drop the process-wide session so the next call rebuilds it."""
    global _session
    if _session is not None:
        _session.simulator.cancel_all()
    _session = None
