import uuid

import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

from freetime.db.mongodb import db, create_indexes


@pytest.fixture
def mongo_sync():
    """In-memory MongoDB wired into the app's Database holder."""
    name = f"freetime_test_{uuid.uuid4().hex}"
    db.client = AsyncMongoMockClient()
    db.db = db.client[name]
    yield db.db
    db.client = None
    db.db = None


@pytest_asyncio.fixture
async def mongo(mongo_sync):
    await create_indexes()
    return mongo_sync


@pytest.fixture
def mongo_down():
    """No connection at all, as if MongoDB were unreachable."""
    db.client = None
    db.db = None
    yield
