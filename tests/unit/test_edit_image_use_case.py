"""
Tests for the edit pipeline use case.
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.application.use_cases.edit_image import EditImageUseCase, PipelineStage
from src.domain.errors import (
    EditError,
    EditFailure,
    HistoryWarning,
    UploadError,
    UploadFailure,
    ValidationError,
)

ORIGINAL_URL = "https://store.example.com/user-1/orig.png"
EDITED_URL = "https://cdn.example.com/edited.png"


@pytest.fixture()
def mock_dependencies():
    storage = MagicMock()
    storage.check_connection = AsyncMock(return_value=True)
    storage.upload = AsyncMock(return_value=ORIGINAL_URL)
    editor = MagicMock()
    editor.invoke = AsyncMock(return_value=EDITED_URL)
    history = MagicMock()
    history.append = AsyncMock(return_value=None)
    return storage, editor, history


def assert_no_network(storage, editor, history):
    storage.check_connection.assert_not_awaited()
    storage.upload.assert_not_awaited()
    editor.invoke.assert_not_awaited()
    history.append.assert_not_awaited()


class TestValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt", ["", "  ", "\n\t", None])
    async def test_blank_prompt_is_rejected_before_any_call(self, mock_dependencies, prompt):
        storage, editor, history = mock_dependencies
        uc = EditImageUseCase(storage, editor, history)

        with pytest.raises(ValidationError):
            await uc.execute(b"img", "photo.png", prompt, owner_id="user-1")

        assert_no_network(storage, editor, history)
        assert uc.stage is PipelineStage.FAILED

    @pytest.mark.asyncio
    async def test_missing_image_is_rejected(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        uc = EditImageUseCase(storage, editor, history)

        with pytest.raises(ValidationError) as err:
            await uc.execute(None, None, "make it blue", owner_id="user-1")

        assert err.value.message == "Please select an image first"
        assert_no_network(storage, editor, history)

    @pytest.mark.asyncio
    async def test_empty_image_is_rejected_before_the_probe(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        seen: list[PipelineStage] = []
        uc = EditImageUseCase(storage, editor, history, on_stage=seen.append)

        with pytest.raises(UploadError) as err:
            await uc.execute(b"", "photo.png", "make it blue", owner_id="user-1")

        assert err.value.kind is UploadFailure.FILE_NOT_FOUND
        assert seen == [PipelineStage.VALIDATING, PipelineStage.FAILED]
        assert_no_network(storage, editor, history)

    @pytest.mark.asyncio
    async def test_prompt_is_checked_before_the_image(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        image_check = MagicMock(side_effect=ValidationError("Invalid image file"))
        uc = EditImageUseCase(storage, editor, history, image_check=image_check)

        with pytest.raises(ValidationError) as err:
            await uc.execute(b"not an image", "photo.png", "  ", owner_id="user-1")

        assert err.value.message == "Please enter a prompt"
        image_check.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_image_check_stops_before_any_call(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        image_check = MagicMock(side_effect=ValidationError("Invalid image file"))
        uc = EditImageUseCase(storage, editor, history, image_check=image_check)

        with pytest.raises(ValidationError):
            await uc.execute(b"not an image", "photo.png", "make it blue", owner_id="user-1")

        image_check.assert_called_once_with(b"not an image")
        assert_no_network(storage, editor, history)


class TestSuccess:
    @pytest.mark.asyncio
    async def test_record_matches_inputs_and_outputs(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        uc = EditImageUseCase(storage, editor, history)

        record = await uc.execute(b"img", "photo.png", "  make it blue ", owner_id="user-1")

        assert record.prompt == "make it blue"
        assert record.original_image_url == ORIGINAL_URL
        assert record.edited_image_url == EDITED_URL
        assert record.owner_id == "user-1"
        storage.upload.assert_awaited_once_with(b"img", "photo.png", "user-1", access_token=None)
        editor.invoke.assert_awaited_once_with(ORIGINAL_URL, "make it blue")
        history.append.assert_awaited_once_with(record, access_token=None)
        assert uc.stage is PipelineStage.DONE
        assert uc.failure is None

    @pytest.mark.asyncio
    async def test_access_token_reaches_storage_and_history(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        uc = EditImageUseCase(storage, editor, history)

        record = await uc.execute(b"img", "photo.png", "make it blue", owner_id="user-1", access_token="jwt-1")

        storage.upload.assert_awaited_once_with(b"img", "photo.png", "user-1", access_token="jwt-1")
        history.append.assert_awaited_once_with(record, access_token="jwt-1")

    @pytest.mark.asyncio
    async def test_ids_are_unique_across_calls(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        uc = EditImageUseCase(storage, editor, history)

        ids = {(await uc.execute(b"img", "photo.png", "make it blue")).id for _ in range(5)}

        assert len(ids) == 5

    @pytest.mark.asyncio
    async def test_stages_are_reported_in_order(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        seen: list[PipelineStage] = []
        uc = EditImageUseCase(storage, editor, history, on_stage=seen.append)

        await uc.execute(b"img", "photo.png", "make it blue", owner_id="user-1")

        assert seen == [
            PipelineStage.VALIDATING,
            PipelineStage.PROBING,
            PipelineStage.UPLOADING,
            PipelineStage.INVOKING,
            PipelineStage.PERSISTING,
            PipelineStage.DONE,
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exc", [HistoryWarning("table missing"), RuntimeError("boom")])
    async def test_history_failure_does_not_fail_the_edit(self, mock_dependencies, exc):
        storage, editor, history = mock_dependencies
        history.append.side_effect = exc
        uc = EditImageUseCase(storage, editor, history)

        record = await uc.execute(b"img", "photo.png", "make it blue", owner_id="user-1")

        assert record.edited_image_url == EDITED_URL
        assert uc.stage is PipelineStage.DONE


class TestFailures:
    @pytest.mark.asyncio
    async def test_unreachable_backend_aborts_before_upload(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        storage.check_connection.return_value = False
        uc = EditImageUseCase(storage, editor, history)

        with pytest.raises(UploadError) as err:
            await uc.execute(b"img", "photo.png", "make it blue", owner_id="user-1")

        assert err.value.kind is UploadFailure.NETWORK_FAILURE
        storage.upload.assert_not_awaited()
        editor.invoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upload_error_propagates_as_is(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        failure = UploadError(UploadFailure.FILE_TOO_LARGE)
        storage.upload.side_effect = failure
        seen: list[PipelineStage] = []
        uc = EditImageUseCase(storage, editor, history, on_stage=seen.append)

        with pytest.raises(UploadError) as err:
            await uc.execute(b"img", "photo.png", "make it blue", owner_id="user-1")

        assert err.value is failure
        assert uc.failure is failure
        assert seen[-2:] == [PipelineStage.UPLOADING, PipelineStage.FAILED]
        editor.invoke.assert_not_awaited()
        history.append.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_edit_error_propagates_and_nothing_is_persisted(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        editor.invoke.side_effect = EditError(EditFailure.RESPONSE_SHAPE_UNRECOGNIZED)
        uc = EditImageUseCase(storage, editor, history)

        with pytest.raises(EditError) as err:
            await uc.execute(b"img", "photo.png", "make it blue", owner_id="user-1")

        assert err.value.kind is EditFailure.RESPONSE_SHAPE_UNRECOGNIZED
        history.append.assert_not_awaited()
        assert uc.stage is PipelineStage.FAILED

    @pytest.mark.asyncio
    async def test_use_case_can_run_again_after_failure(self, mock_dependencies):
        storage, editor, history = mock_dependencies
        editor.invoke.side_effect = [EditError(EditFailure.TIMEOUT), EDITED_URL]
        uc = EditImageUseCase(storage, editor, history)

        with pytest.raises(EditError):
            await uc.execute(b"img", "photo.png", "make it blue")
        record = await uc.execute(b"img", "photo.png", "make it blue")

        assert record.edited_image_url == EDITED_URL
        assert uc.failure is None
