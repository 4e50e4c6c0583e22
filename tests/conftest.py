"""Shared test fixtures.

Provides a wired in-memory ``world``, a FastAPI ``TestClient`` whose
container is replaced by that world, bearer headers for each role, and the
mock Supabase fixtures used by the health endpoint tests.
"""

import os

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from collections.abc import Generator
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from tests.fakes import World, make_settings


@pytest.fixture()
def world() -> World:
    return World(settings=make_settings())


@pytest.fixture()
def api(world: World) -> Generator[TestClient, None, None]:
    """TestClient with the dependency container swapped for ``world``."""
    from app.dependencies import get_container
    from app.main import app

    app.dependency_overrides[get_container] = lambda: world.c
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    app.dependency_overrides.clear()


def _bearer(**claims: object) -> dict[str, str]:
    from app.core.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token(**claims)}"}  # type: ignore[arg-type]


@pytest.fixture()
def partner_headers():
    """Factory: bearer headers for a partner account."""
    from app.models.enums import AccountType

    def _make(partner_id):
        return _bearer(user_id=uuid4(), account_type=AccountType.partner, partner_id=partner_id)

    return _make


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    from app.models.enums import AccountType

    return _bearer(user_id=uuid4(), account_type=AccountType.admin)


@pytest.fixture()
def mock_supabase_module() -> Generator[MagicMock, None, None]:
    """Patch the Supabase client used by the health router."""
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
    with patch(
        "app.routers.health.get_supabase",
        side_effect=Exception("Connection refused"),
    ):
        yield MagicMock()


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Plain FastAPI TestClient without container overrides."""
    from app.main import app

    with TestClient(app) as client:
        yield client
