from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from src.application.dtos.history_dto import DeleteHistoryResponse, EditRecordItem, ListHistoryResponse
from src.infrastructure.api.dependencies import Caller, get_caller, get_history_repo
from src.infrastructure.database.repositories.history_repository import HistoryRepository

router = APIRouter(
    prefix="/history",
    tags=["Edit History"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        404: {"description": "Not Found - Edit record does not exist or user doesn't have access"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.get(
    "",
    response_model=ListHistoryResponse,
    summary="List Edit History",
    description="""
    Retrieve the caller's most recent edits, newest first.

    An unreachable history store yields an empty list rather than an error.

    **Authentication required**: Yes in tenant-scoped deployments (Bearer token)
    """,
    response_description="List of edit records",
)
async def list_history(
    caller: Caller = Depends(get_caller),
    history: HistoryRepository = Depends(get_history_repo),
    limit: int | None = Query(None, ge=1, le=100, description="Maximum number of records to return (1-100)"),
):
    records = await history.list(caller.owner_id, limit=limit, access_token=caller.access_token)
    return ListHistoryResponse(history=[EditRecordItem.from_entity(r) for r in records])


@router.get(
    "/{record_id}",
    response_model=EditRecordItem,
    summary="Get Edit Record",
    description="""
    Retrieve a single edit record.

    **Access control**: Users can only access their own records
    """,
)
async def get_history(
    record_id: str,
    caller: Caller = Depends(get_caller),
    history: HistoryRepository = Depends(get_history_repo),
):
    record = await history.get(record_id, caller.owner_id, access_token=caller.access_token)
    if record is None:
        raise HTTPException(status_code=404, detail="Edit record not found or access denied")
    return EditRecordItem.from_entity(record)


@router.delete(
    "/{record_id}",
    response_model=DeleteHistoryResponse,
    summary="Delete Edit Record",
    description="""
    Delete an edit record from the caller's history.

    **Note**: The stored images are left in place.

    **Access control**: Users can only delete their own records
    """,
    response_description="Confirmation of successful deletion",
)
async def delete_history(
    record_id: str,
    caller: Caller = Depends(get_caller),
    history: HistoryRepository = Depends(get_history_repo),
):
    if not await history.delete(record_id, caller.owner_id, access_token=caller.access_token):
        raise HTTPException(status_code=404, detail="Edit record not found or access denied")
    return DeleteHistoryResponse(ok=True)
