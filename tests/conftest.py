"""Shared fixtures: in-process app client, temp database, local blob store, fake LinkedIn."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")
os.environ.setdefault("LINKEDIN_CLIENT_ID", "test-client-id")
os.environ.setdefault("LINKEDIN_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("LINKEDIN_REDIRECT_URI", "http://testserver/connect/callback")

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from src.dependencies.clients import get_linkedin_client, get_storage
from src.dependencies.db import get_session_dep
from src.infrastructure.database import get_session, init_db
from src.infrastructure.linkedin_client import LinkedInClient
from src.infrastructure.object_storage import LocalStorage
from src.main import app

from tests.api_utils import FakeLinkedIn, bearer, signup


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(base_path=str(tmp_path / "blobs"), base_url="/static")


@pytest.fixture
def fake_linkedin():
    return FakeLinkedIn()


@pytest.fixture
def linkedin_client(fake_linkedin):
    return LinkedInClient(
        client_id="test-client-id",
        client_secret="test-client-secret",
        redirect_uri="http://testserver/connect/callback",
        transport=httpx.MockTransport(fake_linkedin.handle),
    )


@pytest_asyncio.fixture
async def client(engine, storage, linkedin_client):
    async def session_override():
        async with get_session(bind=engine) as session:
            yield session

    app.dependency_overrides[get_session_dep] = session_override
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_linkedin_client] = lambda: linkedin_client
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def alice(client):
    body = await signup(client, "alice")
    return {"id": body["user"]["id"], "headers": bearer(body["token"])}


@pytest_asyncio.fixture
async def bob(client):
    body = await signup(client, "bob")
    return {"id": body["user"]["id"], "headers": bearer(body["token"])}
