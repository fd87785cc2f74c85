from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.entities.edit_record import EditRecord


class EditRecordItem(BaseModel):
    """A single completed image edit."""
    id: str = Field(..., description="Unique identifier of the edit record")
    user_id: str | None = Field(None, description="ID of the user who requested the edit")
    prompt: str = Field(..., description="Edit instruction", examples=["Make the sky a sunset"])
    original_image_url: str = Field(..., description="URL of the uploaded source image")
    edited_image_url: str = Field(..., description="URL of the edited image")
    created_at: datetime = Field(..., description="ISO timestamp when the edit was completed")

    @classmethod
    def from_entity(cls, record: EditRecord) -> EditRecordItem:
        return cls(
            id=record.id,
            user_id=record.owner_id,
            prompt=record.prompt,
            original_image_url=record.original_image_url,
            edited_image_url=record.edited_image_url,
            created_at=record.created_at,
        )


class ListHistoryResponse(BaseModel):
    """Response model for listing edit history, newest first."""
    history: list[EditRecordItem] = Field(..., description="List of edit records")


class DeleteHistoryResponse(BaseModel):
    """Response model for history deletion."""
    ok: bool = Field(True, description="Indicates whether the deletion was successful")
