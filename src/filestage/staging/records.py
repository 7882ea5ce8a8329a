"""Staged file records and raw input files."""

import asyncio
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, List, Optional
from uuid import uuid4

from filestage.staging.classifier import FileCategory, classify_mime_type

DEFAULT_MIME_TYPE = "application/octet-stream"

ByteLoader = Callable[[], Awaitable[bytes]]


class FileStatus(str, Enum):
    """Upload status of a staged record."""

    PENDING = "pending"  # Accepted and staged, upload not started
    UPLOADING = "uploading"  # Transport is reporting progress
    COMPLETED = "completed"  # Reached 100%, terminal
    ERROR = "error"  # Transport failed, terminal


@dataclass
class FileRecord:
    """A file staged for attachment."""

    name: str
    size_bytes: int
    mime_type: str
    id: str = field(default_factory=lambda: str(uuid4()))
    status: FileStatus = FileStatus.PENDING
    progress: float = 0.0
    preview: Optional[str] = None
    upload_date: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def category(self) -> FileCategory:
        return classify_mime_type(self.mime_type)

    @property
    def is_terminal(self) -> bool:
        return self.status in (FileStatus.COMPLETED, FileStatus.ERROR)


@dataclass
class RawFile:
    """A local file offered for staging, not yet validated."""

    name: str
    size_bytes: int
    mime_type: str
    loader: ByteLoader

    async def read_bytes(self) -> bytes:
        """Read the full file content."""
        return await self.loader()

    @classmethod
    def from_bytes(cls, name: str, data: bytes, mime_type: Optional[str] = None) -> "RawFile":
        """Wrap in-memory content, e.g. a multipart upload body."""

        async def _load() -> bytes:
            return data

        return cls(
            name=name,
            size_bytes=len(data),
            mime_type=mime_type or _guess_mime_type(name),
            loader=_load,
        )

    @classmethod
    def from_path(cls, path: Path | str, mime_type: Optional[str] = None) -> "RawFile":
        """Reference a file on disk; bytes are read on a worker thread when needed."""
        file_path = Path(path)

        async def _load() -> bytes:
            return await asyncio.to_thread(file_path.read_bytes)

        return cls(
            name=file_path.name,
            size_bytes=file_path.stat().st_size,
            mime_type=mime_type or _guess_mime_type(file_path.name),
            loader=_load,
        )


def _guess_mime_type(file_name: str) -> str:
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or DEFAULT_MIME_TYPE
