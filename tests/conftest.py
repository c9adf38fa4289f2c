import asyncio
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.core.config import settings
from app.db import mongo
from app.db.indexes import create_indexes
from app.main import app

PREFIX = settings.API_PREFIX
PASSWORD = "s3cret-pass"


def run(coro):
    return asyncio.run(coro)


def registration_form(**overrides):
    form = {
        "name": "Anna Sharma",
        "email": "anna@example.com",
        "password": PASSWORD,
        "phoneNumber": "9876543210",
        "panCard": "ABCDE1234F",
        "gender": "Female",
    }
    form.update(overrides)
    return {key: value for key, value in form.items() if value is not None}


def avatar_file(name="me.png"):
    return {"file": (name, b"\x89PNG fake image bytes", "image/png")}


@pytest.fixture(autouse=True)
def database(monkeypatch, tmp_path):
    """In-memory MongoDB with the real indexes, and a scratch upload dir."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))

    mongo.use_client(AsyncMongoMockClient(), "shopaccounts_test")
    run(create_indexes())
    yield mongo.get_database()
    mongo.use_client(None)


@pytest.fixture
def upload_dir() -> Path:
    return Path(settings.UPLOAD_DIR)


@pytest.fixture
def make_client():
    """One TestClient (and so one cookie jar) per simulated browser."""
    clients = []

    def _make():
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def register(make_client):
    """Registers a user from a fresh client; returns (client, response)."""
    def _register(files=None, **overrides):
        client = make_client()
        response = client.post(
            f"{PREFIX}/create-user",
            data=registration_form(**overrides),
            files=files,
        )
        return client, response

    return _register


@pytest.fixture
def anna(register):
    client, response = register()
    assert response.status_code == 201, response.text
    return client, response.json()["user"]


@pytest.fixture
def bob(register):
    client, response = register(name="Bob Rao", email="bob@example.com", panCard="FGHIJ5678K", gender="Male")
    assert response.status_code == 201, response.text
    return client, response.json()["user"]


def count(collection):
    return run(collection.count_documents({}))
