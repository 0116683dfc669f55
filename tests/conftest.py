"""
Shared fixtures: an in-memory database per test, an in-memory object store and a
recording notifier wired into the app, and an httpx client talking to the app in-process.
Run from the project root: python -m pytest -v
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from httpx import ASGITransport, AsyncClient

from config import settings
from database import Base, engine
from main import app
from services.notifications import NotificationError, get_notifier
from services.object_storage import ObjectStorageError, get_object_storage

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class FakeObjectStorage:
    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.fail_upload = False
        self.fail_delete = False

    async def upload_from_bytes(self, path, data):
        if self.fail_upload:
            raise ObjectStorageError("bucket unavailable")
        self.objects[path] = data

    async def download_as_bytes(self, path):
        if path not in self.objects:
            raise ObjectStorageError(f"missing object {path}")
        return self.objects[path]

    async def delete(self, path):
        if self.fail_delete:
            raise ObjectStorageError("bucket unavailable")
        self.objects.pop(path, None)


class RecordingNotifier:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_submission(self, application, attachments):
        if self.fail:
            raise NotificationError("provider down")
        self.sent.append((application, attachments))


@pytest.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    # in-memory database goes with the connection; the next test starts clean
    await engine.dispose()


@pytest.fixture
def storage():
    return FakeObjectStorage()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def api_app(database, storage, notifier, monkeypatch):
    monkeypatch.setattr(settings, "private_object_dir", "/private")
    app.dependency_overrides[get_object_storage] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield app
    app.dependency_overrides.clear()


def make_client(api_app, user_id=USER_ID):
    return AsyncClient(
        transport=ASGITransport(app=api_app),
        base_url="http://test",
        headers={settings.auth_user_header: user_id},
    )


@pytest.fixture
async def client(api_app):
    async with make_client(api_app) as ac:
        yield ac


@pytest.fixture
async def other_client(api_app):
    async with make_client(api_app, OTHER_USER_ID) as ac:
        yield ac


@pytest.fixture
def quick_start():
    return {
        "loanType": "permanent-acquisition",
        "loanAmount": "3000000",
        "propertyCity": "Austin",
        "propertyState": "TX",
    }
