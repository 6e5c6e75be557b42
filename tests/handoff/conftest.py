import pytest
from httpx import ASGITransport, AsyncClient

from src.handoff.main import app
from src.handoff.services.identity.service import identity_service


@pytest.fixture
def auth_headers():
    # A fresh anonymous identity per test keeps each test's census isolated
    # from everything else written to the shared in-memory store.
    session = identity_service.sign_in_anonymously()
    return {"X-Auth-Token": session.token}


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
