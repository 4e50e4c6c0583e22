"""Unit tests for configuration, Supabase client, /health and logging."""

from unittest.mock import MagicMock, patch

import pydantic
import pytest
from fastapi.testclient import TestClient


class TestSettings:
    """Settings loading via pydantic-settings."""

    def test_settings_loads_required_fields(self) -> None:
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key-123",
            "EMAIL_API_KEY": "pm-test",
            "SEAT_RESERVATION_MODE": "best_effort",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            from app.core.config import Settings

            s = Settings()  # type: ignore[call-arg]
            assert s.SUPABASE_URL == "https://test.supabase.co"
            assert s.SUPABASE_KEY == "test-key-123"
            assert s.EMAIL_API_KEY == "pm-test"
            assert s.SEAT_RESERVATION_MODE == "best_effort"

    def test_settings_defaults(self) -> None:
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            from app.core.config import Settings

            s = Settings()  # type: ignore[call-arg]
            assert s.SEAT_RESERVATION_MODE == "atomic"
            assert s.FIRST_ENROLLMENT_BONUS_SECONDS == 300
            assert s.DEFAULT_EXAM_DATE_MONTHS == 2
            assert s.INVITE_TOKEN_TTL_HOURS == 24
            assert s.IMAGE_JOB_INTERVAL_MINUTES == 45
            assert s.ALLOWED_ORIGINS == "*"
            assert s.LOG_LEVEL == "INFO"

    def test_jwt_secret_key_is_required(self) -> None:
        env = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key",
        }
        with patch.dict("os.environ", env, clear=True):
            from app.core.config import Settings

            with pytest.raises(pydantic.ValidationError) as exc_info:
                Settings(_env_file=None)  # type: ignore[call-arg]

        assert "JWT_SECRET_KEY" in str(exc_info.value)


class TestSupabaseClient:
    """Supabase singleton client."""

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


class TestHealthEndpoint:

    def test_health_connected(
        self, test_client: TestClient, mock_supabase_module: MagicMock
    ) -> None:
        response = test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "connected"
        mock_supabase_module.table.assert_called_with("users")

    def test_health_disconnected(
        self, test_client: TestClient, mock_supabase_disconnected: MagicMock
    ) -> None:
        response = test_client.get("/health")
        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "degraded"
        assert body["database"] == "disconnected"


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
        assert logging.getLogger("apscheduler").level == logging.WARNING
