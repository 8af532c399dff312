"""Unit tests for configuration, the Supabase client, /health and logging."""

import os
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError


class TestSettings:
    """Settings loading via pydantic-settings."""

    def test_settings_loads_required_fields(self) -> None:
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key-123",
            "LLM_API_KEY": "sk-test",
            "DISCORD_GUILD_ID": "guild-1",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            from app.core.config import Settings

            s = Settings()  # type: ignore[call-arg]
            assert s.SUPABASE_URL == "https://test.supabase.co"
            assert s.SUPABASE_KEY == "test-key-123"
            assert s.LLM_API_KEY == "sk-test"
            assert s.DISCORD_GUILD_ID == "guild-1"

    def test_settings_defaults(self) -> None:
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            from app.core.config import Settings

            s = Settings()  # type: ignore[call-arg]
            assert s.LLM_PROVIDER == "openai"
            assert s.LLM_MODEL == "gpt-4o-mini"
            assert s.ALLOWED_ORIGINS == "*"
            assert s.JWT_ALGORITHM == "HS256"
            assert s.JWT_EXPIRES_HOURS == 24
            assert s.MATCH_RECOMPUTE_RESETS_STATUS is False
            assert s.CHANNEL_SYNC_INTERVAL_MINUTES == 30
            assert s.LOG_LEVEL == "INFO"

    def test_boolean_flags_parse_from_env(self) -> None:
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key",
            "MATCH_RECOMPUTE_RESETS_STATUS": "true",
            "MATCHING_MAX_CONCURRENCY": "8",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            from app.core.config import Settings

            s = Settings()  # type: ignore[call-arg]
            assert s.MATCH_RECOMPUTE_RESETS_STATUS is True
            assert s.MATCHING_MAX_CONCURRENCY == 8

    def test_jwt_secret_is_required(self) -> None:
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            os.environ.pop("JWT_SECRET", None)
            from app.core.config import Settings

            with pytest.raises(ValidationError, match="JWT_SECRET"):
                Settings(_env_file=None)  # type: ignore[call-arg]


class TestSupabaseClient:
    def test_get_supabase_returns_client(self) -> None:
        mock_client = MagicMock()
        with patch("app.db.supabase.create_client", return_value=mock_client):
            import app.db.supabase as supa_mod

            supa_mod._client = None
            client = supa_mod.get_supabase()
            assert client is mock_client
            supa_mod._client = None

    def test_get_supabase_is_singleton(self) -> None:
        mock_client = MagicMock()
        with patch("app.db.supabase.create_client", return_value=mock_client) as mock_create:
            import app.db.supabase as supa_mod

            supa_mod._client = None
            first = supa_mod.get_supabase()
            second = supa_mod.get_supabase()
            assert first is second
            mock_create.assert_called_once()
            supa_mod._client = None

    def test_first_row_handles_list_dict_and_empty(self) -> None:
        from app.db.supabase import first_row

        assert first_row(MagicMock(data=[{"id": "a"}, {"id": "b"}])) == {"id": "a"}
        assert first_row(MagicMock(data={"id": "a"})) == {"id": "a"}
        assert first_row(MagicMock(data=[])) is None
        assert first_row(MagicMock(data=None)) is None


class TestHealthEndpoint:
    def test_health_connected(
        self, test_client: TestClient, mock_supabase_module: MagicMock
    ) -> None:
        response = test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "connected"
        assert body["channel_sync_running"] is False
        mock_supabase_module.table.assert_called_with("profiles")

    def test_health_disconnected(
        self, test_client: TestClient, mock_supabase_disconnected: MagicMock
    ) -> None:
        response = test_client.get("/health")
        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "degraded"
        assert body["database"] == "disconnected"

    def test_index_points_to_docs(self, test_client: TestClient) -> None:
        response = test_client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/api/public/docs"


class TestLogging:
    def test_setup_logging_configures_root_logger(self) -> None:
        import logging

        from app.core.logging import setup_logging

        setup_logging()
        root = logging.getLogger()
        assert len(root.handlers) > 0
        handler = root.handlers[0]
        assert handler.formatter is not None
        fmt = handler.formatter._fmt
        assert "%(levelname)" in fmt
        assert "%(asctime)" in fmt
        assert "%(name)" in fmt

    def test_noisy_loggers_quieted(self) -> None:
        import logging

        from app.core.logging import setup_logging

        setup_logging()
        assert logging.getLogger("httpx").level == logging.WARNING
