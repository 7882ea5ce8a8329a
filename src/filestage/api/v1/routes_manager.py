"""File manager API routes."""

import logging
from typing import Callable, Optional

from fastapi import APIRouter, HTTPException

from filestage.core.config import settings
from filestage.models.staging import FileRecordResponse, FileViewResponse, SelectionResponse
from filestage.query.file_manager import FileManager, SortKey, SortOrder
from filestage.staging.exceptions import ManagementDisabledError
from filestage.staging.session import get_staging_session
from filestage.staging.store import StagingStore

router = APIRouter(prefix="/api/v1/manager", tags=["manager"])
logger = logging.getLogger(__name__)

_file_manager: Optional[FileManager] = None
_subscribed_store: Optional[StagingStore] = None
_unsubscribe: Optional[Callable[[], None]] = None


def _delete_staged(record_id: str) -> None:
    session = get_staging_session()
    session.require_management()
    session.store.remove(record_id)
    session.simulator.cancel(record_id)


def get_file_manager() -> FileManager:
    """Get or create the file manager browsing the staging session.

    The manager follows the session store so records removed through any
    route also leave the selection.
    """
    global _file_manager, _subscribed_store, _unsubscribe
    if _file_manager is None:
        _file_manager = FileManager(
            notifier=get_staging_session().notifier,
            on_file_delete=_delete_staged,
            allow_multi_select=settings.ALLOW_MULTI_SELECT,
        )

    store = get_staging_session().store
    if _subscribed_store is not store:
        if _unsubscribe is not None:
            _unsubscribe()
        _unsubscribe = store.subscribe(_file_manager.handle_store_event)
        _subscribed_store = store
    return _file_manager


def reset_file_manager() -> None:
    global _file_manager, _subscribed_store, _unsubscribe
    if _unsubscribe is not None:
        _unsubscribe()
    _file_manager = None
    _subscribed_store = None
    _unsubscribe = None


@router.get("/files", response_model=FileViewResponse)
async def query_files(
    search: Optional[str] = None,
    category: Optional[str] = None,
    sort_by: Optional[SortKey] = None,
    order: Optional[SortOrder] = None,
) -> FileViewResponse:
    """Search, filter and sort the staged files.

    Parameters that are omitted keep their previous value.
    """
    manager = get_file_manager()
    if search is not None:
        manager.set_search_term(search)
    if category is not None:
        try:
            manager.set_filter_category(category)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if sort_by is not None:
        manager.set_sort_key(sort_by)
    if order is not None:
        manager.set_sort_order(order)

    view = manager.view(get_staging_session().list_files())
    return FileViewResponse.from_view(view)


@router.post("/selection/{record_id}", response_model=SelectionResponse)
async def toggle_selection(record_id: str) -> SelectionResponse:
    """Select or deselect a staged file."""
    if record_id not in get_staging_session().store:
        raise HTTPException(status_code=404, detail="File not found")

    manager = get_file_manager()
    selected = manager.toggle_selection(record_id)
    return SelectionResponse(record_id=record_id, selected=selected, selected_ids=manager.selected_ids)


@router.delete("/selection", response_model=SelectionResponse)
async def clear_selection() -> SelectionResponse:
    manager = get_file_manager()
    manager.clear_selection()
    return SelectionResponse(selected_ids=manager.selected_ids)


@router.delete("/files/{record_id}")
async def delete_file(record_id: str) -> dict:
    """Delete a file from the managed view."""
    if record_id not in get_staging_session().store:
        raise HTTPException(status_code=404, detail="File not found")

    try:
        await get_file_manager().delete(record_id)
    except ManagementDisabledError as e:
        raise HTTPException(status_code=403, detail=str(e))
    logger.info(f"Deleted file {record_id} through file manager")
    return {"deleted": True, "record_id": record_id}


@router.post("/files/{record_id}/download", response_model=FileRecordResponse)
async def download_file(record_id: str) -> FileRecordResponse:
    """Signal a download for a file; no bytes are served here."""
    record = get_staging_session().store.get_record(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="File not found")

    await get_file_manager().download(record)
    return FileRecordResponse.from_record(record)
