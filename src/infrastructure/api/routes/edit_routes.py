from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from src.application.dtos.common_dto import ErrorResponse
from src.application.dtos.edit_dto import EditImageResponse
from src.application.dtos.history_dto import EditRecordItem
from src.application.use_cases.edit_image import EditImageUseCase
from src.infrastructure.api.dependencies import Caller, get_caller, get_edit_use_case

router = APIRouter(
    prefix="/edits",
    tags=["Image Editing"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.post(
    "",
    response_model=EditImageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Edit Image",
    description="""
    Upload a photo together with an edit instruction and receive the edited image.

    The photo is stored, handed to the image edit model by URL, and the
    completed edit is saved to the caller's history.

    **Maximum file size**: 10MB
    **Authentication required**: Yes in tenant-scoped deployments (Bearer token)
    """,
    response_description="The completed edit record",
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Missing prompt, empty or invalid image"},
        413: {"model": ErrorResponse, "description": "Payload Too Large - File size exceeds limit"},
        502: {"model": ErrorResponse, "description": "Bad Gateway - The edit service failed or returned no image"},
        503: {"model": ErrorResponse, "description": "Service Unavailable - Storage could not be reached"},
        504: {"model": ErrorResponse, "description": "Gateway Timeout - The edit service took too long"},
    },
)
async def edit_image(
    file: UploadFile = File(..., description="Image file to edit"),
    prompt: str = Form("", description="Edit instruction"),
    caller: Caller = Depends(get_caller),
    use_case: EditImageUseCase = Depends(get_edit_use_case),
):
    """Run one edit and return the resulting record."""
    data = await file.read()
    filename = file.filename or "uploaded_image.jpg"
    record = await use_case.execute(
        data, filename, prompt, owner_id=caller.owner_id, access_token=caller.access_token
    )
    return EditImageResponse(record=EditRecordItem.from_entity(record))
