from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status
from starlette.middleware.cors import CORSMiddleware

from src.domain.errors import EditError, EditFailure, PhotoEditError, UploadError, UploadFailure, ValidationError
from src.infrastructure.config import Settings

_UPLOAD_STATUS = {
    UploadFailure.FILE_NOT_FOUND: status.HTTP_400_BAD_REQUEST,
    UploadFailure.FILE_TOO_LARGE: status.HTTP_413_CONTENT_TOO_LARGE,
    UploadFailure.AUTHENTICATION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    UploadFailure.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    UploadFailure.BUCKET_MISCONFIGURED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UploadFailure.NETWORK_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
    UploadFailure.EXHAUSTED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: PhotoEditError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, UploadError):
        return _UPLOAD_STATUS[exc.kind]
    if isinstance(exc, EditError):
        if exc.kind is EditFailure.TIMEOUT:
            return status.HTTP_504_GATEWAY_TIMEOUT
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _photo_edit_error_handler(request: Request, exc: PhotoEditError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content={"detail": exc.message, "kind": exc.kind_name},
    )


def add_default_middlewares(app: FastAPI, settings: Settings) -> None:
    # In development/demo mode, allow common frontend origins
    if settings.env in ("development", "staging"):
        allowed_origins = [
            "http://localhost:3000",
            "http://localhost:5173",  # Vite default
            "http://localhost:8080",  # Flutter web
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:8080",
        ]
    else:
        allowed_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PhotoEditError, _photo_edit_error_handler)
