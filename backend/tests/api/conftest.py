"""API test fixtures — in-memory route groups + ASGI test client.

Invariants:
    - No route package is imported: groups are plain callables registered directly
    - /api/admin always fails to load, to exercise degradation
    - make_client builds a client for any ASGI app (pipeline or adapter)
"""

from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

from gateway.api.pipeline import create_app
from tests.api.fake_groups import (
    RecordingGroup, broken_admin_factory, build_config, coins_group, rituals_group,
)


@pytest.fixture
def groups():
    auth = RecordingGroup("auth")
    fortune = RecordingGroup("fortune")
    limits = RecordingGroup("fortune-limits")
    return {
        "/api/auth": lambda: auth,
        "/api/coins": lambda: coins_group,
        "/api/rituals": lambda: rituals_group,
        "/api/fortune": lambda: fortune,
        "/api/fortune-limits": lambda: limits,
        "/api/admin": broken_admin_factory,
    }


@pytest.fixture
def gateway_config(groups):
    return build_config(groups)


@pytest.fixture
def make_client():
    @asynccontextmanager
    async def _make(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test",
        ) as c:
            yield c
    return _make


@pytest.fixture
async def client(gateway_config, make_client):
    async with make_client(create_app(gateway_config)) as c:
        yield c
