import base64

import pytest
from fastapi.testclient import TestClient

from config import Settings
from directory import AttendeeDirectory, parse_attendee
from layout import LayoutStore
from main import create_app

ADMIN_USER = "admin"
ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path / "data",
        admin_username=ADMIN_USER,
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def directory(tmp_path):
    d = AttendeeDirectory(tmp_path / "attendees.db", tmp_path / "attendees.db.lock")
    d.init_db()
    return d


@pytest.fixture
def layouts(tmp_path):
    return LayoutStore(tmp_path / "print-layout.json")


@pytest.fixture
def make_attendee(directory):
    def _make(name="Ada Lovelace", email="ada@example.com", **extra):
        return directory.register(parse_attendee(name=name, email=email, **extra))

    return _make


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    token = base64.b64encode(f"{ADMIN_USER}:{ADMIN_PASSWORD}".encode()).decode()
    return {"Authorization": f"Basic {token}"}
