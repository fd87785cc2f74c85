import os
import sys
from io import BytesIO
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'src' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage")

EDITED_URL = "https://cdn.example.com/edited/result.png"


def make_png_bytes(w=4, h=4, color=(128, 64, 32)) -> bytes:
    img = Image.new("RGB", (w, h), color)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def settings(tmp_path):
    from src.infrastructure.config import Settings

    return Settings(disabled=True, local_storage_dir=str(tmp_path / "storage"), tenant_scoped=True)


@pytest.fixture()
def edit_client() -> MagicMock:
    fake = MagicMock()
    fake.invoke = AsyncMock(return_value=EDITED_URL)
    return fake


@pytest.fixture()
def app(settings, edit_client):
    # lazy import after env configured
    from src.main import create_app

    app = create_app(settings)
    app.state.edit_client = edit_client
    return app


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def auth_header() -> dict[str, str]:
    # any token is accepted without a Supabase backend
    return {"Authorization": "Bearer test-token"}


@pytest.fixture()
def other_auth_header() -> dict[str, str]:
    return {"Authorization": "Bearer someone-else"}


@pytest.fixture()
def png_bytes() -> bytes:
    return make_png_bytes()
