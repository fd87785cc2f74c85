from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.application.use_cases.edit_image import EditImageUseCase
from src.infrastructure.api.image_check import ensure_image
from src.infrastructure.config import Settings
from src.infrastructure.database.repositories.history_repository import HistoryRepository
from src.infrastructure.database.supabase_client import SupabaseAuthAdapter, UserInfo
from src.infrastructure.edit.remote_edit_client import DashScopeEditClient, RemoteEditClient
from src.infrastructure.storage.supabase_storage import SupabaseStorage

_bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_adapter(request: Request) -> SupabaseAuthAdapter:
    return request.app.state.auth


def get_storage(request: Request) -> SupabaseStorage:
    return request.app.state.storage


def get_history_repo(request: Request) -> HistoryRepository:
    return request.app.state.history


def get_edit_client(request: Request) -> RemoteEditClient:
    return request.app.state.edit_client


def get_model_client(request: Request) -> DashScopeEditClient:
    return request.app.state.model_client


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)] = None,
    auth: Annotated[SupabaseAuthAdapter, Depends(get_auth_adapter)] = None,
) -> UserInfo:
    if not credentials or not credentials.scheme or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = credentials.credentials
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    try:
        return auth.validate_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


@dataclass(slots=True)
class Caller:
    """Who a tenant-scoped request runs as; both fields are None otherwise."""

    owner_id: str | None = None
    access_token: str | None = None


def get_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)] = None,
    auth: Annotated[SupabaseAuthAdapter, Depends(get_auth_adapter)] = None,
    settings: Annotated[Settings, Depends(get_settings)] = None,
) -> Caller:
    if not settings.tenant_scoped:
        return Caller()
    user = get_current_user(credentials, auth)
    return Caller(owner_id=user.id, access_token=credentials.credentials)


def get_edit_use_case(
    storage: Annotated[SupabaseStorage, Depends(get_storage)],
    editor: Annotated[RemoteEditClient, Depends(get_edit_client)],
    history: Annotated[HistoryRepository, Depends(get_history_repo)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> EditImageUseCase:
    # One use case per request; it tracks the stage of that request only
    return EditImageUseCase(
        storage=storage,
        editor=editor,
        history=history,
        image_check=partial(ensure_image, max_bytes=settings.max_upload_bytes),
    )
