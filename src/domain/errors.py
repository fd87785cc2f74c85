"""Error taxonomy for the edit pipeline.

Every error carries a ``kind`` and a ``message`` that is safe to show to an
end user. Underlying exceptions are chained with ``raise ... from`` and never
leak into ``message``.
"""
from __future__ import annotations

from enum import Enum


class UploadFailure(str, Enum):
    FILE_NOT_FOUND = "file_not_found"
    FILE_TOO_LARGE = "file_too_large"
    AUTHENTICATION_REQUIRED = "authentication_required"
    PERMISSION_DENIED = "permission_denied"
    BUCKET_MISCONFIGURED = "bucket_misconfigured"
    NETWORK_FAILURE = "network_failure"
    EXHAUSTED = "exhausted"


class EditFailure(str, Enum):
    CONNECTION_FAILED = "connection_failed"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"
    TIMEOUT = "timeout"
    RESPONSE_SHAPE_UNRECOGNIZED = "response_shape_unrecognized"
    REJECTED = "rejected"


_UPLOAD_MESSAGES = {
    UploadFailure.FILE_NOT_FOUND: "Image file does not exist or is empty.",
    UploadFailure.FILE_TOO_LARGE: "Image file too large (max 10MB).",
    UploadFailure.AUTHENTICATION_REQUIRED: "Please sign in to upload images.",
    UploadFailure.PERMISSION_DENIED: (
        "Storage access denied. Please ensure you are signed in and have permission to upload files."
    ),
    UploadFailure.BUCKET_MISCONFIGURED: "Storage bucket not configured. Please contact support.",
    UploadFailure.NETWORK_FAILURE: (
        "Network connection failed. Please check your internet connection and try again."
    ),
    UploadFailure.EXHAUSTED: "Upload failed after several attempts. Please try again later.",
}

_EDIT_MESSAGES = {
    EditFailure.CONNECTION_FAILED: (
        "Failed to connect to the image edit service. Please check your internet connection."
    ),
    EditFailure.NOT_FOUND: "Image edit service not found. Please check the function name and deployment.",
    EditFailure.INTERNAL_ERROR: "Image edit service internal error. Please try again later.",
    EditFailure.TIMEOUT: "Image edit service took too long to respond. Please try again.",
    EditFailure.RESPONSE_SHAPE_UNRECOGNIZED: (
        "Failed to edit image: no edited image URL returned. Please try a different prompt."
    ),
    EditFailure.REJECTED: "Image edit request was rejected by the service.",
}


class PhotoEditError(Exception):
    """Base class for every classified pipeline failure."""

    kind: Enum | str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind_name(self) -> str:
        return self.kind.value if isinstance(self.kind, Enum) else str(self.kind)


class ValidationError(PhotoEditError):
    kind = "validation"


class UploadError(PhotoEditError):
    def __init__(
        self, kind: UploadFailure, message: str | None = None, *, attempts: int | None = None
    ) -> None:
        super().__init__(message or _UPLOAD_MESSAGES[kind])
        self.kind = kind
        self.attempts = attempts


class EditError(PhotoEditError):
    def __init__(
        self, kind: EditFailure, message: str | None = None, *, status_code: int | None = None
    ) -> None:
        super().__init__(message or _EDIT_MESSAGES[kind])
        self.kind = kind
        self.status_code = status_code


class HistoryWarning(PhotoEditError):
    """History could not be persisted. Never fails an edit."""

    kind = "history"
