"""Shared test fixtures for DevDox."""

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from devdox.config import Settings

MASTER_KEY = "a" * 32


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test settings on a clean temp data dir."""
    return Settings(
        env="test",
        api_version="1.0.0-test",
        data_dir=tmp_path,
        encryption_master_key=SecretStr(MASTER_KEY),
    )


@pytest.fixture
async def app(settings):
    """Create a fresh app instance with its lifespan running."""
    from devdox.app import create_app

    application = create_app(settings)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    """HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def api_key(app) -> str:
    """Issue an API key for user_1 and return it."""
    from devdox.auth import issue_api_key

    return await issue_api_key(app.state.db, "user_1")
