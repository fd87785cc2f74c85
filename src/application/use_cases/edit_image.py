from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from src.domain.entities.edit_record import EditRecord
from src.domain.errors import HistoryWarning, PhotoEditError, UploadError, UploadFailure, ValidationError
from src.infrastructure.logger import get_logger

logger = get_logger("pipeline")


class PipelineStage(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PROBING = "probing"
    UPLOADING = "uploading"
    INVOKING = "invoking"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class ObjectUploader(Protocol):
    async def check_connection(self) -> bool: ...

    async def upload(
        self,
        data: bytes,
        file_name: str,
        owner_id: str | None = None,
        access_token: str | None = None,
    ) -> str: ...


class RemoteEditInvoker(Protocol):
    async def invoke(self, image_url: str, prompt: str) -> str: ...


class HistoryStore(Protocol):
    async def append(self, record: EditRecord, access_token: str | None = None) -> None: ...


@dataclass
class EditImageUseCase:
    storage: ObjectUploader
    editor: RemoteEditInvoker
    history: HistoryStore
    on_stage: Callable[[PipelineStage], None] | None = None
    # Raises ValidationError for bytes that are not a usable image
    image_check: Callable[[bytes], None] | None = None
    stage: PipelineStage = field(default=PipelineStage.IDLE, init=False)
    failure: PhotoEditError | None = field(default=None, init=False)

    def _enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        logger.debug("Edit pipeline stage: %s", stage.value)
        if self.on_stage is not None:
            self.on_stage(stage)

    async def execute(
        self,
        data: bytes | None,
        file_name: str | None,
        prompt: str,
        owner_id: str | None = None,
        access_token: str | None = None,
    ) -> EditRecord:
        """
        Upload an image, have it edited according to ``prompt`` and record it.

        Stages run strictly in order: validate, probe connectivity, upload,
        invoke the edit service, persist history. Validation, upload and edit
        failures abort with their classified error and nothing is persisted.
        A history failure is only logged; the record is returned regardless.

        ``access_token`` is forwarded to storage and history so their calls
        run as the caller.
        """
        self.failure = None
        try:
            self._enter(PipelineStage.VALIDATING)
            prompt = (prompt or "").strip()
            if not prompt:
                raise ValidationError("Please enter a prompt")
            if data is None or not file_name:
                raise ValidationError("Please select an image first")
            if not data:
                raise UploadError(UploadFailure.FILE_NOT_FOUND)
            if self.image_check is not None:
                self.image_check(data)

            self._enter(PipelineStage.PROBING)
            if not await self.storage.check_connection():
                raise UploadError(UploadFailure.NETWORK_FAILURE)

            self._enter(PipelineStage.UPLOADING)
            original_url = await self.storage.upload(data, file_name, owner_id, access_token=access_token)

            self._enter(PipelineStage.INVOKING)
            edited_url = await self.editor.invoke(original_url, prompt)
        except PhotoEditError as exc:
            self.failure = exc
            logger.error("Edit failed while %s: %s (%s)", self.stage.value, exc.message, exc.kind_name)
            self._enter(PipelineStage.FAILED)
            raise

        self._enter(PipelineStage.PERSISTING)
        record = EditRecord(
            prompt=prompt,
            original_image_url=original_url,
            edited_image_url=edited_url,
            owner_id=owner_id,
        )
        try:
            await self.history.append(record, access_token=access_token)
        except HistoryWarning as exc:
            logger.warning("Edit %s succeeded but was not saved to history: %s", record.id, exc.message)
        except Exception as exc:
            logger.warning("Edit %s succeeded but history store failed: %s", record.id, exc)

        self._enter(PipelineStage.DONE)
        return record
