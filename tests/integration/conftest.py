"""Integration-test fixtures.

The ASGI app runs against the in-memory backend: `get_services` and
`get_db_session` are overridden, so no PostgreSQL or Redis is needed.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.container import get_services
from src.main import app
from src.pm_common.database import get_db_session
from src.pm_gateway.auth.jwt_handler import create_access_token


@pytest.fixture
async def client(services) -> AsyncClient:
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()

    async def _services():
        return services

    async def _session():
        yield session

    app.dependency_overrides[get_services] = _services
    app.dependency_overrides[get_db_session] = _session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """auth("alice") -> headers carrying a Bearer token for that identity."""
    def _headers(identity: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(identity)}"}
    return _headers
