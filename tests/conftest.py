"""Shared fixtures: a fresh demo store and clients wired to it in-process."""

import httpx
import pytest

from api_client import StorefrontAPI
from app import app, data_store
from auth_service import AuthSession
from config import DEMO_BASE_URL

CUSTOMER = ("customer@test.com", "1234")
ADMIN = ("admin@test.com", "admin")


@pytest.fixture(autouse=True)
def fresh_store():
    data_store.reset()
    yield data_store


@pytest.fixture
async def api():
    client = StorefrontAPI(base_url=DEMO_BASE_URL, transport=httpx.ASGITransport(app=app))
    yield client
    await client.aclose()


@pytest.fixture
def session(api):
    return AuthSession(api)


@pytest.fixture
async def customer(session):
    await session.login(*CUSTOMER)
    return session


@pytest.fixture
async def admin(session):
    await session.login(*ADMIN)
    return session


@pytest.fixture
def mock_api():
    """Factory for clients backed by an ``httpx.MockTransport`` handler."""
    def make(handler) -> StorefrontAPI:
        return StorefrontAPI(base_url="http://shop.test/api", transport=httpx.MockTransport(handler))
    return make
