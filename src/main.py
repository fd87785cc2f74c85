from __future__ import annotations

from functools import partial

from fastapi import FastAPI

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.auth_routes import router as auth_router
from src.infrastructure.api.routes.edit_routes import router as edit_router
from src.infrastructure.api.routes.function_routes import router as function_router
from src.infrastructure.api.routes.history_routes import router as history_router
from src.infrastructure.config import Settings
from src.infrastructure.database.repositories.history_repository import HistoryRepository
from src.infrastructure.database.supabase_client import (
    SupabaseAuthAdapter,
    build_supabase_client,
    build_user_client,
)
from src.infrastructure.edit.remote_edit_client import DashScopeEditClient, build_edit_client
from src.infrastructure.logger import setup_logger
from src.infrastructure.storage.supabase_storage import SupabaseStorage


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logger = setup_logger()

    app = FastAPI(
        title="PhotoEdit Backend",
        version="0.1.0",
        description="""
        ## PhotoEdit Backend API

        Upload a photo, describe the change you want in plain words, and get back
        an edited image. Supabase provides auth, storage and the history table;
        the edit itself is performed by a remote image edit model.

        ### Features
        - **Image Editing**: Upload + instruction in, edited image URL out
        - **History**: Per-user log of completed edits, newest first
        - **Edge Function**: Self-hosted equivalent of the ``image-edit`` function

        ### Authentication
        In tenant-scoped deployments, edit and history endpoints require a
        Supabase access token:
        ```
        Authorization: Bearer your-jwt-token
        ```

        ### Error Responses
        Pipeline failures answer ``{"detail": "...", "kind": "..."}``:
        - **400 Bad Request**: Missing prompt, empty or invalid image
        - **401 Unauthorized**: Missing or invalid authentication token
        - **413 Payload Too Large**: Image larger than 10MB
        - **502 Bad Gateway**: The edit service failed or returned no image
        - **503 Service Unavailable**: Storage unreachable or upload retries exhausted
        - **504 Gateway Timeout**: The edit service took too long
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    client = build_supabase_client(settings)
    user_client = None
    if client is None:
        logger.info("Supabase not configured, using local storage and in-memory history")
    else:
        user_client = partial(build_user_client, settings)
    app.state.settings = settings
    app.state.auth = SupabaseAuthAdapter(client)
    app.state.storage = SupabaseStorage(client, settings, user_client=user_client)
    app.state.history = HistoryRepository(client, settings, user_client=user_client)
    app.state.edit_client = build_edit_client(settings)
    app.state.model_client = DashScopeEditClient(settings)

    add_default_middlewares(app, settings)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the PhotoEdit API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "photoedit-backend", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
        response_description="Health status of the API service",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(auth_router)
    app.include_router(edit_router)
    app.include_router(history_router)
    app.include_router(function_router)
    return app


app = create_app()
