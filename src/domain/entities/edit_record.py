from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class EditRecord:
    prompt: str
    original_image_url: str
    edited_image_url: str
    owner_id: str | None = None  # None outside tenant-scoped mode
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        for name in ("prompt", "original_image_url", "edited_image_url"):
            if not getattr(self, name):
                raise ValueError(f"EditRecord.{name} must not be empty")

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "id": self.id,
            "prompt": self.prompt,
            "original_image_url": self.original_image_url,
            "edited_image_url": self.edited_image_url,
            "created_at": self.created_at.isoformat(),
        }
        if self.owner_id:
            row["user_id"] = self.owner_id
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> EditRecord:
        created_at = row["created_at"]
        if isinstance(created_at, str):
            # Postgres may return a trailing Z
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return cls(
            id=row["id"],
            owner_id=row.get("user_id"),
            prompt=row["prompt"],
            original_image_url=row["original_image_url"],
            edited_image_url=row["edited_image_url"],
            created_at=created_at,
        )
