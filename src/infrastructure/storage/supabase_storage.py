from __future__ import annotations

import asyncio
import mimetypes
import re
import uuid
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx
from supabase import Client

from src.domain.errors import UploadError, UploadFailure
from src.infrastructure.config import Settings
from src.infrastructure.logger import get_logger

logger = get_logger("storage")

DEFAULT_CONTENT_TYPE = "image/jpeg"

# Failures that another attempt cannot fix
PERMANENT_FAILURES = frozenset({UploadFailure.PERMISSION_DENIED, UploadFailure.BUCKET_MISCONFIGURED})

_PERMISSION_PATTERN = re.compile(r"row-level security|\brls\b|unauthorized|\b403\b")
_BUCKET_PATTERN = re.compile(r"bucket not found|bucket does not exist|bucket is private")
_NETWORK_PATTERN = re.compile(r"connection failed|operation not permitted|connection refused")


def classify_storage_error(exc: BaseException) -> UploadFailure | None:
    """Map a storage client exception to an upload failure kind.

    Returns None for failures that are not recognised; those are retried like
    network failures.
    """
    if isinstance(exc, httpx.TransportError):
        return UploadFailure.NETWORK_FAILURE
    text = str(exc).lower()
    if _PERMISSION_PATTERN.search(text):
        return UploadFailure.PERMISSION_DENIED
    if _BUCKET_PATTERN.search(text):
        return UploadFailure.BUCKET_MISCONFIGURED
    if _NETWORK_PATTERN.search(text):
        return UploadFailure.NETWORK_FAILURE
    return None


def file_extension(file_name: str) -> str:
    return Path(file_name).name.rsplit(".", 1)[-1].lower()


def content_type_for(file_name: str) -> str:
    guessed, _ = mimetypes.guess_type(Path(file_name).name)
    return guessed or DEFAULT_CONTENT_TYPE


class SupabaseStorage:
    """Storage adapter for Supabase Storage with a local fake fallback.

    Uploads raw image bytes, retrying transient failures, and resolves a URL
    the remote edit service can fetch: a signed URL for private buckets, a
    public URL otherwise. Without a client, files are written under
    ``settings.local_storage_dir`` and a ``file://`` URL is returned.

    When ``user_client`` is given, uploads made with an access token go
    through the client it builds for that token, so bucket policies apply
    to the caller rather than the anon role.
    """

    def __init__(
        self,
        client: Client | None,
        settings: Settings,
        *,
        user_client: Callable[[str], Client] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.user_client = user_client
        self.settings = settings
        self.bucket = settings.bucket
        self.local_dir = Path(settings.local_storage_dir)
        self._sleep = sleep

    def build_key(self, file_name: str, owner_id: str | None) -> str:
        name = f"{uuid.uuid4()}.{file_extension(file_name)}"
        if self.settings.tenant_scoped:
            # Storage policies match on the first folder of the key
            return f"{owner_id}/{name}"
        return name

    def _client_for(self, access_token: str | None) -> Client | None:
        if self.client is None or not access_token or self.user_client is None:
            return self.client
        return self.user_client(access_token)

    async def check_connection(self) -> bool:
        """Advisory probe: can the storage backend be reached at all?"""
        if self.client is None:
            return True
        try:
            await asyncio.to_thread(self.client.storage.list_buckets)
        except httpx.TransportError as exc:
            logger.warning("Storage connectivity probe failed: %s", exc)
            return False
        except Exception as exc:
            # The server answered, e.g. "anonymous sign-ins are disabled"
            logger.info("Storage probe returned an error, backend is reachable: %s", exc)
        return True

    async def upload_file(
        self, path: str | Path, owner_id: str | None = None, access_token: str | None = None
    ) -> str:
        path = Path(path)
        if not path.is_file():
            raise UploadError(UploadFailure.FILE_NOT_FOUND)
        data = await asyncio.to_thread(path.read_bytes)
        return await self.upload(data, path.name, owner_id, access_token=access_token)

    async def upload(
        self,
        data: bytes,
        file_name: str,
        owner_id: str | None = None,
        access_token: str | None = None,
    ) -> str:
        """Store ``data`` and return a URL for it. Raises UploadError."""
        if not data:
            raise UploadError(UploadFailure.FILE_NOT_FOUND)
        if len(data) > self.settings.max_upload_bytes:
            raise UploadError(UploadFailure.FILE_TOO_LARGE)
        if self.settings.tenant_scoped and not owner_id:
            raise UploadError(UploadFailure.AUTHENTICATION_REQUIRED)

        key = self.build_key(file_name, owner_id)
        client = self._client_for(access_token)
        content_type = content_type_for(file_name)
        max_attempts = self.settings.upload_max_attempts
        last_exc: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                await self._put(client, key, data, content_type)
                break
            except Exception as exc:
                kind = classify_storage_error(exc)
                if kind in PERMANENT_FAILURES:
                    logger.error("Upload of %s failed permanently: %s", key, kind.value)
                    raise UploadError(kind) from exc
                last_exc = exc
                logger.warning("Upload attempt %d/%d for %s failed: %s", attempt, max_attempts, key, exc)
                if attempt < max_attempts:
                    await self._sleep(attempt * self.settings.upload_retry_base_delay)
        else:
            logger.error("Upload of %s exhausted after %d attempts", key, max_attempts)
            raise UploadError(UploadFailure.EXHAUSTED, attempts=max_attempts) from last_exc

        logger.info("Uploaded %s (%d bytes, %s)", key, len(data), content_type)
        return await self._resolve_url(client, key)

    async def _put(self, client: Client | None, key: str, data: bytes, content_type: str) -> None:
        if client is None:
            full_path = self.local_dir / key
            await asyncio.to_thread(full_path.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(full_path.write_bytes, data)
            return
        bucket = client.storage.from_(self.bucket)
        await asyncio.to_thread(
            bucket.upload,
            path=key,
            file=data,
            file_options={"content-type": content_type, "upsert": "false"},
        )

    async def _resolve_url(self, client: Client | None, key: str) -> str:
        if client is None:
            return (self.local_dir / key).resolve().as_uri()
        bucket = client.storage.from_(self.bucket)
        try:
            if self.settings.public_bucket:
                return await asyncio.to_thread(bucket.get_public_url, key)
            res = await asyncio.to_thread(
                bucket.create_signed_url, key, self.settings.signed_url_expires_in
            )
        except Exception as exc:
            kind = classify_storage_error(exc) or UploadFailure.NETWORK_FAILURE
            raise UploadError(kind) from exc
        # storage3 has returned both spellings across releases
        url = res.get("signedURL") or res.get("signedUrl")
        if not url:
            raise UploadError(UploadFailure.BUCKET_MISCONFIGURED)
        return url
