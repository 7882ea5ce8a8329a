"""Staging API data models."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from filestage.query.file_manager import FileView
from filestage.staging.classifier import format_file_size
from filestage.staging.exceptions import OversizeRejected
from filestage.staging.notifier import Notification
from filestage.staging.records import FileRecord
from filestage.staging.session import StagingConfig


class StagingConfigResponse(BaseModel):
    """Response model for the file picker configuration."""

    accept: str
    accepted_mime_patterns: List[str]
    max_file_size_bytes: int
    max_file_size_mb: float
    allow_multiple_files: bool
    enable_previews: bool
    enable_management_controls: bool

    @classmethod
    def from_config(cls, config: StagingConfig) -> "StagingConfigResponse":
        patterns = sorted(config.accepted_mime_patterns)
        return cls(
            accept=",".join(patterns),
            accepted_mime_patterns=patterns,
            max_file_size_bytes=config.max_file_size_bytes,
            max_file_size_mb=round(config.max_file_size_bytes / (1024 * 1024), 2),
            allow_multiple_files=config.allow_multiple_files,
            enable_previews=config.enable_previews,
            enable_management_controls=config.enable_management_controls,
        )


class FileRecordResponse(BaseModel):
    """Response model for a staged file record."""

    id: str
    name: str
    size_bytes: int
    size: str
    mime_type: str
    category: str
    status: str
    progress: float
    preview: Optional[str] = None
    upload_date: Optional[datetime] = None
    tags: List[str] = []
    error: Optional[str] = None
    selected: bool = False

    @classmethod
    def from_record(cls, record: FileRecord, selected: bool = False) -> "FileRecordResponse":
        return cls(
            id=record.id,
            name=record.name,
            size_bytes=record.size_bytes,
            size=format_file_size(record.size_bytes),
            mime_type=record.mime_type,
            category=record.category.value,
            status=record.status.value,
            progress=round(record.progress, 2),
            preview=record.preview,
            upload_date=record.upload_date,
            tags=list(record.tags),
            error=record.error,
            selected=selected,
        )


class RejectedFileResponse(BaseModel):
    """A file that failed validation."""

    file_name: str
    size_bytes: int
    reason: str

    @classmethod
    def from_error(cls, error: OversizeRejected) -> "RejectedFileResponse":
        return cls(file_name=error.file_name, size_bytes=error.size_bytes, reason=str(error))


class StageBatchResponse(BaseModel):
    """Response model for a staged batch."""

    batch_id: str
    staged: List[FileRecordResponse]
    rejected: List[RejectedFileResponse]


class FileListResponse(BaseModel):
    """Response model for the staged collection."""

    files: List[FileRecordResponse]
    count: int
    is_uploading: bool


class FileViewResponse(BaseModel):
    """Response model for a file manager query."""

    files: List[FileRecordResponse]
    count: int
    total_size_bytes: int
    total_size: str
    selected_ids: List[str]

    @classmethod
    def from_view(cls, view: FileView) -> "FileViewResponse":
        return cls(
            files=[FileRecordResponse.from_record(r, selected=view.is_selected(r.id)) for r in view.files],
            count=view.count,
            total_size_bytes=view.total_size_bytes,
            total_size=view.total_size,
            selected_ids=view.selected_ids,
        )


class SelectionResponse(BaseModel):
    """Response model for selection changes."""

    record_id: Optional[str] = None
    selected: bool = False
    selected_ids: List[str]


class NotificationResponse(BaseModel):
    """A drained notification."""

    kind: str
    title: str
    detail: str
    created_at: datetime

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            kind=notification.kind.value,
            title=notification.title,
            detail=notification.detail,
            created_at=notification.created_at,
        )
