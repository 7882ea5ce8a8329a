"""Staging API routes."""

import logging
from typing import List

from fastapi import APIRouter, File, HTTPException, UploadFile

from filestage.models.staging import (
    FileListResponse,
    FileRecordResponse,
    NotificationResponse,
    RejectedFileResponse,
    StageBatchResponse,
    StagingConfigResponse,
)
from filestage.staging.exceptions import ManagementDisabledError
from filestage.staging.notifier import InMemoryNotifier
from filestage.staging.records import DEFAULT_MIME_TYPE, RawFile
from filestage.staging.session import get_staging_session

router = APIRouter(prefix="/api/v1/staging", tags=["staging"])
logger = logging.getLogger(__name__)


@router.get("/config", response_model=StagingConfigResponse)
async def get_staging_config() -> StagingConfigResponse:
    """File picker configuration for the host UI."""
    return StagingConfigResponse.from_config(get_staging_session().config)


@router.post("/files", response_model=StageBatchResponse, status_code=201)
async def stage_files(files: List[UploadFile] = File(...)) -> StageBatchResponse:
    """Stage a batch of files and wait for its uploads to settle.

    Oversized files are reported under ``rejected`` and never staged.
    """
    session = get_staging_session()
    try:
        raw_files = []
        for upload in files:
            content = await upload.read()
            content_type = upload.content_type
            if content_type == DEFAULT_MIME_TYPE:
                # Let the extension decide
                content_type = None
            raw_files.append(RawFile.from_bytes(upload.filename or "unnamed", content, content_type))

        result = await session.stage_files(raw_files)

        return StageBatchResponse(
            batch_id=result.batch_id,
            staged=[FileRecordResponse.from_record(record) for record in result.staged],
            rejected=[RejectedFileResponse.from_error(error) for error in result.rejected],
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during staging: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/files", response_model=FileListResponse)
async def list_staged_files() -> FileListResponse:
    """Current staged records with their status and progress."""
    session = get_staging_session()
    records = session.list_files()
    return FileListResponse(
        files=[FileRecordResponse.from_record(record) for record in records],
        count=len(records),
        is_uploading=session.is_uploading,
    )


@router.delete("/files/{record_id}", response_model=FileRecordResponse)
async def remove_staged_file(record_id: str) -> FileRecordResponse:
    """Remove one record from the staged set."""
    session = get_staging_session()
    try:
        removed = session.remove_file(record_id)
    except ManagementDisabledError as e:
        raise HTTPException(status_code=403, detail=str(e))

    if removed is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileRecordResponse.from_record(removed)


@router.delete("/files")
async def clear_staged_files() -> dict:
    """Remove every staged record."""
    session = get_staging_session()
    try:
        count = session.clear_all()
    except ManagementDisabledError as e:
        raise HTTPException(status_code=403, detail=str(e))

    return {"cleared_count": count}


@router.get("/notifications", response_model=List[NotificationResponse])
async def drain_notifications() -> List[NotificationResponse]:
    """Return and forget pending notifications."""
    notifier = get_staging_session().notifier
    if not isinstance(notifier, InMemoryNotifier):
        return []
    return [NotificationResponse.from_notification(n) for n in notifier.drain()]
