import pytest
from httpx import AsyncClient, ASGITransport
import os
import uuid
from datetime import timedelta

# Set up test environment variables before anything else
os.environ["ENV"] = "testing"
os.environ["DB_NAME"] = "taskhub_test"
os.environ["SECRET_KEY"] = "test_secret_key_12345"
os.environ["REALTIME_REQUIRE_AUTH"] = "false"

from config import config
config.ENV = "testing"

from mongomock_motor import AsyncMongoMockClient

from main import app, lifespan
from database import client, db
from models.task import TaskModel
from models.user import UserModel
from realtime.channels import Connection
from routes.deps import create_access_token


@pytest.fixture(scope="function", autouse=True)
def mock_mongo():
    """Every test gets a fresh in-memory MongoDB."""
    client.install(AsyncMongoMockClient())
    yield
    client.install(None)

@pytest.fixture(scope="function")
async def async_client():
    async with lifespan(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
            yield test_client

@pytest.fixture(scope="function")
async def users():
    people = {
        "alice": UserModel(id="user_alice", name="Alice Owner", email="alice@test.com"),
        "bob": UserModel(id="user_bob", name="Bob Builder", email="bob@test.com"),
        "carol": UserModel(id="user_carol", name="Carol Reviewer", email="carol@test.com"),
    }
    await db.users.insert_many([u.model_dump() for u in people.values()])
    return people

def headers_for(user: UserModel) -> dict:
    token = create_access_token(data={"sub": user.id}, expires_delta=timedelta(minutes=60))
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture(scope="function")
def alice_headers(users):
    return headers_for(users["alice"])

@pytest.fixture(scope="function")
def bob_headers(users):
    return headers_for(users["bob"])

@pytest.fixture(scope="function")
def make_task():
    """Insert a task document directly, bypassing the API (explicit timestamps etc.)."""
    async def _make(**fields):
        fields.setdefault("description", "Seeded task")
        fields.setdefault("creator_id", "user_alice")
        task = TaskModel(**fields)
        await db.tasks.insert_one(task.model_dump())
        return task
    return _make

async def _discard(message):
    return None

@pytest.fixture(scope="function")
def listener(async_client):
    """Register a fake socket on the live router; optionally join a channel."""
    def _listen(channel=None) -> Connection:
        router = app.state.channel_router
        connection = Connection(uuid.uuid4().hex, _discard)
        router.connect(connection)
        if channel:
            router.join(connection.id, channel)
        return connection
    return _listen

def drain(connection: Connection) -> list:
    messages = []
    while not connection.outbox.empty():
        messages.append(connection.outbox.get_nowait())
    return messages

def event_names(connection: Connection) -> list:
    return [m["event"] for m in drain(connection)]
