"""
Staging Engine

Accepts local files for attachment to a conversation: validates them against
the size policy, generates inline image previews, stages them in an ordered
store and drives each through a (simulated) upload with progress feedback.
"""

from filestage.staging.classifier import FileCategory, classify_mime_type, format_file_size
from filestage.staging.records import FileRecord, FileStatus, RawFile
from filestage.staging.session import StagingConfig, StagingResult, StagingSession
from filestage.staging.store import StagingStore, StoreEvent, StoreEventKind

__all__ = [
    "FileCategory",
    "FileRecord",
    "FileStatus",
    "RawFile",
    "StagingConfig",
    "StagingResult",
    "StagingSession",
    "StagingStore",
    "StoreEvent",
    "StoreEventKind",
    "classify_mime_type",
    "format_file_size",
]
