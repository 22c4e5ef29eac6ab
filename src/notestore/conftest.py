# src/notestore/conftest.py
"""
Pytest configuration and shared fixtures.

Tests are co-located with implementation files using the *_test.py suffix.
This file provides fixtures available to all tests in the package.

The psycopg stores run against DATABASE_URL from .env.test and are skipped
when that server is unreachable. The builder store runs against a SQLite
file per test; the document store runs against an in-memory collection.
"""

import os

# Set environment BEFORE importing any app modules
os.environ["NOTESTORE_ENV"] = "test"

from types import SimpleNamespace

import pytest
from bson import ObjectId

from notestore import errors
from notestore.config import config
from notestore.note import (
    BuilderNoteStore,
    ConnectionNoteStore,
    DocumentNoteStore,
    PoolNoteStore,
)

# =============================================================================
# Document Store Double
# =============================================================================


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self.docs = docs

    async def to_list(self, length=None):
        return self.docs if length is None else self.docs[:length]


class FakeCollection:
    """
    In-memory stand-in for an async pymongo collection.

    Supports only the equality-on-_id filters the document store issues.
    """

    def __init__(self):
        self.docs: dict[ObjectId, dict] = {}

    def find(self, filter: dict) -> FakeCursor:
        return FakeCursor([dict(doc) for doc in self.docs.values()])

    async def find_one(self, filter: dict) -> dict | None:
        doc = self.docs.get(filter["_id"])
        return dict(doc) if doc else None

    async def insert_one(self, doc: dict):
        doc.setdefault("_id", ObjectId())
        self.docs[doc["_id"]] = dict(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, filter: dict, update: dict):
        doc = self.docs.get(filter["_id"])
        if doc:
            doc.update(update["$set"])
        return SimpleNamespace(matched_count=1 if doc else 0)

    async def delete_one(self, filter: dict):
        removed = self.docs.pop(filter["_id"], None)
        return SimpleNamespace(deleted_count=1 if removed else 0)

    async def delete_many(self, filter: dict):
        count = len(self.docs)
        self.docs.clear()
        return SimpleNamespace(deleted_count=count)


# =============================================================================
# Store Fixtures
# =============================================================================


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}"


_unavailable: dict[str, str] = {}


async def open_test_store(backend: str, tmp_path):
    """Open a store for ``backend`` with an empty notes table."""
    if backend in _unavailable:
        pytest.skip(_unavailable[backend])
    try:
        if backend == "connection":
            store = await ConnectionNoteStore.connect(config.database_url, connect_timeout=2)
        elif backend == "pool":
            store = await PoolNoteStore.open(config.database_url, timeout=2)
        elif backend == "builder":
            store = await BuilderNoteStore.open(sqlite_url(tmp_path))
        else:
            return DocumentNoteStore(FakeCollection())
    except errors.ConnectionError as exc:
        _unavailable[backend] = f"{backend} backend unavailable: {exc}"
        pytest.skip(_unavailable[backend])

    await store.create_schema()
    await store.delete_all()
    return store


@pytest.fixture(params=["connection", "pool", "builder", "document"])
async def store(request, tmp_path):
    """Provide each NoteStore implementation in turn, emptied before use."""
    store = await open_test_store(request.param, tmp_path)
    yield store
    await store.delete_all()
    await store.close()


@pytest.fixture
async def builder_store(tmp_path):
    store = await open_test_store("builder", tmp_path)
    yield store
    await store.close()


@pytest.fixture
def document_collection():
    return FakeCollection()


@pytest.fixture
def document_store(document_collection):
    return DocumentNoteStore(document_collection)
