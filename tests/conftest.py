"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import BinaryIO

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_voice_note_service
from app.services.registry import VoiceNoteRegistry
from app.services.storage import ObjectStore, ObjectStoreError, StoredObject, UploadOptions
from app.services.voice_note import VoiceNoteService


class FakeClock:
    """Clock that advances one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


class FakeObjectStore(ObjectStore):
    """In-process object store that can be told to fail."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.uploads: list[UploadOptions] = []
        self.deletes: list[tuple[str, str]] = []
        self.fail_uploads = False
        self.fail_deletes = False

    def upload(self, stream: BinaryIO, options: UploadOptions) -> StoredObject:
        self.uploads.append(options)
        if self.fail_uploads:
            raise ObjectStoreError("simulated upload failure")
        key = f"{options.folder}/{options.target_id}"
        self.objects[key] = stream.read()
        return StoredObject(remote_url=f"https://storage.example.com/{key}", remote_object_id=key)

    def delete(self, remote_object_id: str, resource_kind: str = "video") -> None:
        self.deletes.append((remote_object_id, resource_kind))
        if self.fail_deletes:
            raise ObjectStoreError("simulated delete failure")
        self.objects.pop(remote_object_id, None)


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    return FakeClock()


@pytest.fixture(name="registry")
def registry_fixture(clock: FakeClock) -> VoiceNoteRegistry:
    return VoiceNoteRegistry(clock=clock)


@pytest.fixture(name="store")
def store_fixture() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture(name="service")
def service_fixture(registry: VoiceNoteRegistry, store: FakeObjectStore) -> VoiceNoteService:
    return VoiceNoteService(registry=registry, store=store, folder="anonymous-voices")


@pytest.fixture(name="client")
def client_fixture(service: VoiceNoteService):
    """Create a test client backed by the fake store and disabled rate limiting."""
    from app.rate_limit import limiter
    from main import app

    app.dependency_overrides[get_voice_note_service] = lambda: service
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="lenient_client")
def lenient_client_fixture(service: VoiceNoteService):
    """Test client that returns the 500 response for unhandled errors instead of re-raising them."""
    from app.rate_limit import limiter
    from main import app

    app.dependency_overrides[get_voice_note_service] = lambda: service
    limiter.enabled = False
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()
