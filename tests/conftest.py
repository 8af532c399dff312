"""Shared test fixtures.

Seeds the required environment before ``app`` is imported, and provides a
FastAPI ``test_client``, mock Supabase clients and profile builders.
"""

import os

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("JWT_SECRET", "test-secret")

from collections.abc import Callable, Generator  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import MagicMock, patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.models.profile import Profile  # noqa: E402


@pytest.fixture()
def mock_supabase() -> Generator[MagicMock, None, None]:
    """Patch ``get_supabase`` to return a mock Supabase client."""
    mock_client = MagicMock()
    with patch("app.db.supabase.get_supabase", return_value=mock_client) as _:
        yield mock_client


@pytest.fixture()
def mock_supabase_module() -> Generator[MagicMock, None, None]:
    """Patch the Supabase client at module level in the health router."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_select = MagicMock()
    mock_limit = MagicMock()

    mock_client.table.return_value = mock_table
    mock_table.select.return_value = mock_select
    mock_select.limit.return_value = mock_limit
    mock_limit.execute.return_value = MagicMock()

    with patch("app.routers.health.get_supabase", return_value=mock_client):
        yield mock_client


@pytest.fixture()
def mock_supabase_disconnected() -> Generator[MagicMock, None, None]:
    """Patch ``get_supabase`` to simulate a disconnected database."""
    with patch(
        "app.routers.health.get_supabase",
        side_effect=Exception("Connection refused"),
    ):
        yield MagicMock()


@pytest.fixture()
def make_profile() -> Callable[..., Profile]:
    """Build a Profile with sensible defaults; override any field by kwarg."""

    def _make(profile_id: str = "p-1", **fields: Any) -> Profile:
        data: dict[str, Any] = {
            "id": profile_id,
            "username": f"user-{profile_id}",
            "discord_id": f"discord-{profile_id}",
            "skills": [],
        }
        data.update(fields)
        return Profile(**data)

    return _make


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient with dependency overrides cleared afterwards.

    ``get_db`` is always overridden so no route builds a real Supabase client.
    """
    from app.dependencies import get_db
    from app.main import app

    app.dependency_overrides[get_db] = lambda: MagicMock()
    with patch("app.main.start_scheduler"), patch("app.main.shutdown_scheduler"):
        with TestClient(app) as client:
            yield client
    app.dependency_overrides.clear()
