"""API fixtures — FastAPI test client wired to the in-memory container.

Invariants:
    - app.state.container replaced with the test container (lifespan does not run
      under ASGITransport)
    - db_manager patched to the in-memory engine for readiness probes
    - App exceptions are not re-raised into the test: the 500 handler answers them

Design Decisions:
    - Route tests go through the same container fixtures as service tests, so
      notifications can be asserted with the recording sender
"""

import pytest
from httpx import ASGITransport, AsyncClient

import custody.infrastructure.database as db_module
from custody.main import app


@pytest.fixture
async def client(container, db):
    original_manager = db_module.db_manager
    db_module.db_manager = db
    app.state.container = container

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c

    await container.bus.drain()
    del app.state.container
    db_module.db_manager = original_manager


@pytest.fixture
def as_user():
    def headers(user_id: str) -> dict[str, str]:
        return {"X-User-Id": user_id}
    return headers
