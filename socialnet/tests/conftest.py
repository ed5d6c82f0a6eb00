import uuid
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from socialnet.core import ensure_indexes, get_db
from socialnet.main import app


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with the production indexes."""
    mongo = AsyncMongoMockClient()
    database = mongo[f"socialnet_test_{uuid.uuid4().hex[:8]}"]
    await ensure_indexes(database)
    return database


@pytest_asyncio.fixture
async def client(db):
    app.dependency_overrides[get_db] = lambda: db
    async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_user(client):
    async def _make(username, email=None):
        res = await client.post('/api/users', json={
            'username': username,
            'email': email or f'{username}@example.com',
        })
        assert res.status_code == 200, res.text
        return res.json()
    return _make


@pytest_asyncio.fixture
async def make_thought(client):
    async def _make(username, text='hello world'):
        res = await client.post('/api/thoughts', json={'thoughtText': text, 'username': username})
        assert res.status_code == 200, res.text
        return res.json()
    return _make
