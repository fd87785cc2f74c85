from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.application.dtos.history_dto import EditRecordItem


class EditImageResponse(BaseModel):
    """Response model for a completed edit."""
    record: EditRecordItem = Field(..., description="The persisted edit record")


class ImageEditFunctionRequest(BaseModel):
    """Body of the image-edit function. Both fields are checked by the handler."""
    image_url: str | None = Field(None, description="URL the edit service can fetch the image from")
    prompt: str | None = Field(None, description="Edit instruction")


class ImageEditFunctionResponse(BaseModel):
    """Raw model output; null when the upstream call failed."""
    message: Any = Field(None, description="Edited image payload as returned by the model")
