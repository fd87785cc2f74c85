from __future__ import annotations

import os
from dataclasses import dataclass

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DASHSCOPE_BASE_URL = "https://dashscope.aliyuncs.com/api/v1"


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default) == "1"


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration, read from the environment by ``from_env``.

    Components receive this object in their constructor instead of reading
    environment variables themselves, so tests can build one directly.
    """

    supabase_url: str | None = None
    supabase_key: str | None = None
    disabled: bool = False
    bucket: str = "images"
    local_storage_dir: str = ".local_storage"
    history_table: str = "edited_images"
    edit_function: str = "image-edit"
    edit_function_url: str | None = None
    # Partition uploads and history rows by the authenticated user
    tenant_scoped: bool = True
    public_bucket: bool = False
    signed_url_expires_in: int = 3600
    upload_max_attempts: int = 3
    upload_retry_base_delay: float = 2.0
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    edit_backend: str = "edge"
    model_api_key: str | None = None
    dashscope_base_url: str = DASHSCOPE_BASE_URL
    edit_timeout: float = 120.0
    history_limit_default: int = 20
    env: str = "development"

    @property
    def backend_available(self) -> bool:
        return not self.disabled and bool(self.supabase_url) and bool(self.supabase_key)

    @classmethod
    def from_env(cls) -> Settings:
        tenant_scoped = _flag("TENANT_SCOPED", "1")
        public_default = "0" if tenant_scoped else "1"
        return cls(
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_ANON_KEY"),
            disabled=_flag("SUPABASE_DISABLED", "0"),
            bucket=os.getenv("SUPABASE_STORAGE_BUCKET", "images"),
            local_storage_dir=os.getenv("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage"),
            history_table=os.getenv("SUPABASE_HISTORY_TABLE", "edited_images"),
            edit_function=os.getenv("SUPABASE_EDIT_FUNCTION", "image-edit"),
            edit_function_url=os.getenv("EDIT_FUNCTION_URL"),
            tenant_scoped=tenant_scoped,
            public_bucket=_flag("STORAGE_PUBLIC_BUCKET", public_default),
            signed_url_expires_in=int(os.getenv("SIGNED_URL_EXPIRES_IN", "3600")),
            upload_max_attempts=int(os.getenv("UPLOAD_MAX_ATTEMPTS", "3")),
            upload_retry_base_delay=float(os.getenv("UPLOAD_RETRY_BASE_DELAY", "2.0")),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES))),
            edit_backend=os.getenv("EDIT_BACKEND", "edge").lower(),
            model_api_key=os.getenv("BAILIAN_API_KEY"),
            dashscope_base_url=os.getenv("DASHSCOPE_BASE_URL", DASHSCOPE_BASE_URL),
            edit_timeout=float(os.getenv("EDIT_TIMEOUT_SECONDS", "120")),
            history_limit_default=int(os.getenv("HISTORY_LIMIT_DEFAULT", "20")),
            env=os.getenv("ENV", "development"),
        )
