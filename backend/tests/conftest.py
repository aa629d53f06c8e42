"""Shared pytest fixtures for the family budget tests."""

from __future__ import annotations

import io

import pytest
import qrcode
from fastapi.testclient import TestClient
from PIL import Image

from family_budget.config import Settings
from family_budget.main import create_app
from family_budget.store import JsonFileBackend, RecordStore, open_store

RECEIPT_QR = "t=20250630T1736&s=1234.50&fn=7380440800123456&i=12345&fp=1234567890&n=1"


class FakeLookup:
    """Stands in for the fiscal lookup client."""

    def __init__(self, lines=None, error: Exception | None = None):
        self.lines = lines
        self.error = error
        self.calls = []

    def fetch_items(self, payload):
        self.calls.append(payload)
        if self.error is not None:
            raise self.error
        return self.lines


class FakeClassifier:
    """Stands in for the item classifier; ``respond(items, categories)`` builds the mapping."""

    def __init__(self, respond=None):
        self.respond = respond or (lambda items, categories: {})
        self.calls = []

    def classify(self, items, categories):
        self.calls.append((items, categories))
        return self.respond(items, categories)


def qr_png(text: str) -> bytes:
    """PNG bytes of a clean QR code."""
    buffer = io.BytesIO()
    qrcode.make(text, box_size=10, border=4).save(buffer)
    return buffer.getvalue()


def blank_png(size: tuple[int, int] = (200, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, "white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def store(settings):
    """JSON store seeded with the default categories."""
    store = open_store(settings)
    yield store
    store.close()


@pytest.fixture
def empty_store(tmp_path):
    store = RecordStore(JsonFileBackend(tmp_path / "empty"))
    store.load()
    yield store
    store.close()


@pytest.fixture
def lookup() -> FakeLookup:
    return FakeLookup()


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def app(settings, store, lookup, classifier):
    return create_app(settings, store=store, lookup=lookup, classifier=classifier)


@pytest.fixture
def anon_client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(anon_client):
    """Client logged in as egor."""
    response = anon_client.post("/api/auth", json={"pin": "1329"})
    assert response.status_code == 200
    return anon_client
