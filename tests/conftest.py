"""Pytest configuration and shared fixtures."""

import random
from typing import Callable, Optional

import pytest

from filestage.staging.notifier import InMemoryNotifier
from filestage.staging.records import FileRecord, RawFile
from filestage.staging.session import StagingConfig, StagingSession
from filestage.staging.store import StagingStore
from filestage.staging.transport import SimulatedTransport, Transport

MB = 1024 * 1024

# Smallest valid PNG header, enough for preview encoding
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


def make_raw_file(
    name: str,
    size_bytes: int,
    mime_type: str,
    content: bytes = PNG_BYTES,
) -> RawFile:
    """Raw file whose reported size is independent of its (small) content."""

    async def _load() -> bytes:
        return content

    return RawFile(name=name, size_bytes=size_bytes, mime_type=mime_type, loader=_load)


def make_record(name: str, size_bytes: int = 100, mime_type: str = "text/plain", **kwargs) -> FileRecord:
    return FileRecord(name=name, size_bytes=size_bytes, mime_type=mime_type, **kwargs)


@pytest.fixture
def notifier():
    """Notifier that keeps every message for assertions."""
    return InMemoryNotifier()


@pytest.fixture
def store():
    """Create a fresh staging store for each test."""
    return StagingStore()


@pytest.fixture
def fast_transport():
    """Simulated transport with no tick delay and a fixed seed."""
    return SimulatedTransport(tick_interval=0, max_increment=15.0, rng=random.Random(42))


@pytest.fixture
def session_factory(notifier, fast_transport) -> Callable[..., StagingSession]:
    """Build staging sessions with test-friendly defaults."""

    def _make(
        max_file_size_bytes: int = 10 * MB,
        allow_multiple_files: bool = True,
        enable_previews: bool = True,
        enable_management_controls: bool = True,
        transport: Optional[Transport] = None,
        on_file_select=None,
    ) -> StagingSession:
        config = StagingConfig(
            accepted_mime_patterns={"image/*", ".pdf"},
            max_file_size_bytes=max_file_size_bytes,
            allow_multiple_files=allow_multiple_files,
            enable_previews=enable_previews,
            enable_management_controls=enable_management_controls,
        )
        return StagingSession(
            config=config,
            notifier=notifier,
            transport=transport or fast_transport,
            on_file_select=on_file_select,
        )

    return _make


@pytest.fixture
def api_settings(monkeypatch):
    """Fast, deterministic settings for API tests with fresh singletons."""
    from filestage.api.v1.routes_manager import reset_file_manager
    from filestage.core.config import settings
    from filestage.staging.session import reset_staging_session

    monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 1)
    monkeypatch.setattr(settings, "UPLOAD_TICK_INTERVAL_MS", 1)
    monkeypatch.setattr(settings, "ALLOW_MULTIPLE_FILES", True)
    monkeypatch.setattr(settings, "ENABLE_FILE_MANAGEMENT", True)
    monkeypatch.setattr(settings, "ALLOW_MULTI_SELECT", True)

    reset_staging_session()
    reset_file_manager()
    yield settings
    reset_staging_session()
    reset_file_manager()
