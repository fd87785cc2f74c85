from __future__ import annotations

import hashlib
from dataclasses import dataclass

from supabase import Client, ClientOptions, create_client

from src.infrastructure.config import Settings


@dataclass(slots=True)
class UserInfo:
    id: str
    email: str | None


def build_supabase_client(settings: Settings) -> Client | None:
    """Create the backend client, or None when running without Supabase."""
    if not settings.backend_available:
        return None
    return create_client(settings.supabase_url, settings.supabase_key)


def build_user_client(settings: Settings, access_token: str) -> Client:
    """Create a client that acts as the caller.

    Storage and table requests carry the caller's access token instead of the
    anon key, so row-level security policies see their ``auth.uid()``.
    """
    options = ClientOptions(headers={"Authorization": f"Bearer {access_token}"})
    client = create_client(settings.supabase_url, settings.supabase_key, options=options)
    client.postgrest.auth(access_token)
    return client


class SupabaseAuthAdapter:
    """Small wrapper to validate Supabase access tokens.

    Without a backend client (SUPABASE_DISABLED=1 or missing credentials),
    this returns a deterministic fake user for any token.
    """

    def __init__(self, client: Client | None) -> None:
        self._client = client

    def validate_token(self, token: str) -> UserInfo:
        if not token:
            raise ValueError("Missing access token")
        if self._client is None:
            digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:10]
            return UserInfo(id=f"fake-{digest}", email=None)
        try:
            res = self._client.auth.get_user(token)
        except Exception as exc:  # pragma: no cover - network path
            raise ValueError(f"Invalid access token: {exc}") from exc
        user = res.user if res else None
        if not user:
            raise ValueError("Invalid access token")
        return UserInfo(id=user.id, email=user.email)
