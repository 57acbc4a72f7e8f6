import io
import itertools
import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from botocore.exceptions import ClientError

# Configure before any app module reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["SPACES_ENDPOINT"] = "https://storage.test"
os.environ["SPACES_BUCKET"] = "event-photos"
os.environ["PUBLIC_BASE_URL"] = "https://fotos.test"
os.environ["CAPTURE_RATE_LIMIT"] = "1000/minute"
os.environ["ORPHAN_CLEANUP_SCHEDULE"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from app.db.base import Base  # noqa: E402
from app.db.models.Event import Event  # noqa: E402
from app.db.models.Photo import Photo  # noqa: E402
from app.db.session import engine, SessionLocal  # noqa: E402
from app.services import digital_oceans  # noqa: E402
from app.services import photo_service  # noqa: E402

HOST_ID = "host-1"
OTHER_HOST_ID = "host-2"
# Objects placed straight into the fake store count as long settled
SEEDED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeSpacesClient:
    """In-memory stand-in for the S3 client, with per-operation failure switches."""

    def __init__(self):
        self.objects = {}
        self.modified = {}
        self.fail_upload = False
        self.fail_delete = False
        self.fail_download_keys = set()
        self.refuse_delete_keys = set()
        self.delete_calls = []
        self.download_calls = []

    def _error(self, operation, code="InternalError", message="Simulated storage failure"):
        return ClientError({"Error": {"Code": code, "Message": message}}, operation)

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        if self.fail_upload:
            raise self._error("PutObject")
        self.objects[key] = fileobj.read()
        self.modified[key] = datetime.now(timezone.utc)

    def download_fileobj(self, bucket, key, fileobj):
        self.download_calls.append(key)
        if key in self.fail_download_keys or key not in self.objects:
            raise self._error("GetObject", code="404", message="Not Found")
        fileobj.write(self.objects[key])

    def delete_objects(self, Bucket, Delete):
        keys = [item["Key"] for item in Delete["Objects"]]
        self.delete_calls.append(keys)
        if self.fail_delete:
            raise self._error("DeleteObjects")
        errors = []
        for key in keys:
            if key in self.refuse_delete_keys:
                errors.append({"Key": key, "Code": "AccessDenied", "Message": "Access Denied"})
            else:
                self.objects.pop(key, None)
        return {"Errors": errors} if errors else {}

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        objects = self.objects
        objects_modified = self.modified

        class Paginator:
            def paginate(self, Bucket, Prefix=""):
                keys = sorted(key for key in objects if key.startswith(Prefix))
                if keys:
                    yield {"Contents": [
                        {"Key": key, "LastModified": objects_modified.get(key, SEEDED_AT)} for key in keys
                    ]}
                else:
                    yield {}

        return Paginator()


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def storage(monkeypatch):
    fake = FakeSpacesClient()
    monkeypatch.setattr(digital_oceans, "get_spaces_client", lambda: fake)
    return fake


@pytest.fixture
def clock(monkeypatch):
    """Distinct millisecond timestamps for consecutive captures."""
    counter = itertools.count(1_700_000_000_000)
    monkeypatch.setattr(photo_service, "time", SimpleNamespace(time=lambda: next(counter) / 1000))
    return counter


@pytest.fixture
def client():
    from main import app
    with TestClient(app) as test_client:
        yield test_client


def make_token(user_id: str, email: str = None) -> str:
    payload = {"sub": user_id, "email": email or f"{user_id}@example.com"}
    return jwt.encode(payload, os.environ["SECRET_KEY"], algorithm="HS256")


def auth_headers(user_id: str = HOST_ID) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def create_event(name: str = "Festa da Ana", user_id: str = HOST_ID, description: str = None,
                 is_public: bool = False) -> str:
    with SessionLocal() as db:
        event = Event(name=name, user_id=user_id, description=description, is_public=is_public)
        db.add(event)
        db.commit()
        return event.id


def add_photo(storage: FakeSpacesClient, event_id: str, index: int, data: bytes = None) -> str:
    """Store an object and its record; higher index means more recent."""
    path = f"{event_id}/{1_700_000_000_000 + index}.jpg"
    storage.objects[path] = data if data is not None else f"photo-{index}".encode()
    with SessionLocal() as db:
        photo = Photo(
            event_id=event_id,
            storage_path=path,
            taken_by="guest",
            created_at=datetime(2024, 1, 1) + timedelta(minutes=index)
        )
        db.add(photo)
        db.commit()
        return photo.id


def count_photos(event_id: str) -> int:
    with SessionLocal() as db:
        return db.query(Photo).filter(Photo.event_id == event_id).count()


def event_exists(event_id: str) -> bool:
    with SessionLocal() as db:
        return db.query(Event).filter(Event.id == event_id).first() is not None


def zip_names(content: bytes) -> list:
    import zipfile
    with zipfile.ZipFile(io.BytesIO(content)) as zf:
        return sorted(zf.namelist())
