from __future__ import annotations

from typing import Any

import httpx

from src.domain.errors import EditError, EditFailure
from src.domain.services.response_normalizer import extract_edited_image_url
from src.infrastructure.config import Settings
from src.infrastructure.logger import get_logger

logger = get_logger("edit")

GENERATION_PATH = "/services/aigc/multimodal-generation/generation"
EDIT_MODEL = "qwen-image-edit"


class RemoteEditClient:
    """Single POST to an edit endpoint, normalized to an edited image URL.

    Never retries: an edit may be expensive and is not idempotent.
    """

    def __init__(
        self,
        url: str | None,
        headers: dict[str, str],
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.headers = {"Content-Type": "application/json", **headers}
        self.timeout = timeout
        self._transport = transport

    def build_payload(self, image_url: str, prompt: str) -> dict[str, Any]:
        return {"image_url": image_url, "prompt": prompt}

    def unwrap(self, body: Any) -> Any:
        return body

    async def invoke(self, image_url: str, prompt: str) -> str:
        body = await self._post(self.build_payload(image_url, prompt))
        edited_url = extract_edited_image_url(self.unwrap(body))
        if not edited_url:
            logger.error("Edit response had no recognisable image URL: %.200r", body)
            raise EditError(EditFailure.RESPONSE_SHAPE_UNRECOGNIZED)
        return edited_url

    async def _post(self, payload: dict[str, Any]) -> Any:
        if not self.url:
            raise EditError(EditFailure.NOT_FOUND, "Image edit service is not configured.")

        # A fresh client per request keeps us independent of the caller's event loop
        timeout = httpx.Timeout(self.timeout, connect=10.0)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(self.url, headers=self.headers, json=payload)
        except httpx.TimeoutException as exc:
            logger.error("Edit request to %s timed out", self.url)
            raise EditError(EditFailure.TIMEOUT) from exc
        except httpx.RequestError as exc:
            logger.error("Edit request to %s failed: %s", self.url, exc)
            raise EditError(EditFailure.CONNECTION_FAILED) from exc

        status = response.status_code
        if status == 404:
            raise EditError(EditFailure.NOT_FOUND, status_code=status)
        if status >= 500:
            logger.error("Edit service returned HTTP %d: %.200s", status, response.text)
            raise EditError(EditFailure.INTERNAL_ERROR, status_code=status)
        if status >= 400:
            logger.error("Edit service rejected request with HTTP %d: %.200s", status, response.text)
            raise EditError(
                EditFailure.REJECTED,
                f"Image edit request was rejected by the service (HTTP {status}).",
                status_code=status,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise EditError(EditFailure.RESPONSE_SHAPE_UNRECOGNIZED, status_code=status) from exc


class EdgeFunctionEditClient(RemoteEditClient):
    """Calls the ``image-edit`` function, which answers ``{"message": ...}``."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        url = settings.edit_function_url
        if not url and settings.supabase_url:
            url = f"{settings.supabase_url.rstrip('/')}/functions/v1/{settings.edit_function}"
        headers = {}
        if settings.supabase_key:
            headers = {
                "Authorization": f"Bearer {settings.supabase_key}",
                "apikey": settings.supabase_key,
            }
        super().__init__(url, headers, timeout=settings.edit_timeout, transport=transport)


class DashScopeEditClient(RemoteEditClient):
    """Calls the upstream image edit model directly."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        url = settings.dashscope_base_url.rstrip("/") + GENERATION_PATH if settings.model_api_key else None
        super().__init__(
            url,
            {"Authorization": f"Bearer {settings.model_api_key}"},
            timeout=settings.edit_timeout,
            transport=transport,
        )

    def build_payload(self, image_url: str, prompt: str) -> dict[str, Any]:
        return {
            "model": EDIT_MODEL,
            "input": {
                "messages": [
                    {"role": "user", "content": [{"image": image_url}, {"text": prompt}]},
                ]
            },
            "parameters": {"negative_prompt": "", "watermark": False},
        }

    def unwrap(self, body: Any) -> Any:
        # Present the model output the way the edge function does
        return {"message": self.message_content(body)}

    @staticmethod
    def message_content(body: Any) -> Any:
        """``output.choices[0].message.content`` or None."""
        try:
            return body["output"]["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return None

    async def generate(self, image_url: str, prompt: str) -> Any:
        """Raw message content from the model, for serving the edge function contract."""
        body = await self._post(self.build_payload(image_url, prompt))
        return self.message_content(body)


def build_edit_client(settings: Settings) -> RemoteEditClient:
    if settings.edit_backend == "dashscope":
        return DashScopeEditClient(settings)
    return EdgeFunctionEditClient(settings)
