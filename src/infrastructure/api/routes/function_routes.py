from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.application.dtos.edit_dto import ImageEditFunctionRequest, ImageEditFunctionResponse
from src.domain.errors import EditError
from src.infrastructure.api.dependencies import get_model_client
from src.infrastructure.edit.remote_edit_client import DashScopeEditClient
from src.infrastructure.logger import get_logger

logger = get_logger("function")

router = APIRouter(prefix="/functions", tags=["Edge Functions"])


@router.post(
    "/image-edit",
    response_model=ImageEditFunctionResponse,
    summary="Image Edit Function",
    description="""
    Serves the same contract as the Supabase ``image-edit`` edge function:
    forwards ``image_url`` and ``prompt`` to the image edit model and returns
    its raw output as ``message``.

    An upstream failure still answers 200 with ``message: null``.
    """,
    responses={
        400: {"description": "Missing image_url or prompt"},
        500: {"description": "Internal server error"},
    },
)
async def image_edit_function(
    request: Request,
    model: DashScopeEditClient = Depends(get_model_client),
):
    try:
        body = ImageEditFunctionRequest.model_validate(await request.json())
    except ValueError as exc:
        logger.error("Server error: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    if not body.image_url or not body.prompt:
        return JSONResponse(status_code=400, content={"error": "Missing image_url or prompt"})

    try:
        message = await model.generate(body.image_url, body.prompt)
    except EditError as exc:
        logger.error("Request error: %s", exc.message)
        message = None
    return ImageEditFunctionResponse(message=message)
