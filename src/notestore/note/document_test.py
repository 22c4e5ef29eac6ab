"""
Tests for DocumentNoteStore specifics.

Run with: pytest src/notestore/note/document_test.py -v
"""
import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect

from notestore import errors
from notestore.errors import InvalidIdError, PersistenceError
from notestore.note import DocumentNoteStore, Note, TokenId


class TestParseId:
    """Tests for DocumentNoteStore.parse_id()"""

    def test_accepts_object_id(self, document_store):
        oid = ObjectId()

        assert document_store.parse_id(oid) == TokenId(str(oid))

    def test_accepts_token_id(self, document_store):
        token = TokenId("507f1f77bcf86cd799439011")

        assert document_store.parse_id(token) is token

    @pytest.mark.parametrize("raw", [
        b"123456789012",  # 12 raw bytes are an ObjectId, not a note id
        "123456789012",  # 12-character strings are not accepted
        42,
    ])
    def test_rejects_non_hex_forms(self, document_store, raw):
        with pytest.raises(InvalidIdError):
            document_store.parse_id(raw)


async def test_documents_store_title_and_body_only(document_store, document_collection):
    note = await document_store.insert_one(
        Note(title="Groceries", body="milk", id=TokenId("507f1f77bcf86cd799439011"))
    )

    [doc] = document_collection.docs.values()
    assert set(doc) == {"_id", "title", "body"}
    assert doc["_id"] == ObjectId(note.id.value)
    assert note.id != TokenId("507f1f77bcf86cd799439011")


async def test_update_uses_set(document_store, document_collection):
    note = await document_store.insert_one(Note(title="Groceries", body="milk"))
    document_collection.docs[ObjectId(note.id.value)]["extra"] = "kept"

    await document_store.update_one(Note(id=note.id, title="Groceries", body="bread"))

    doc = document_collection.docs[ObjectId(note.id.value)]
    assert doc["body"] == "bread"
    assert doc["extra"] == "kept"


class FailingCollection:
    """Collection whose every call fails as if the server went away."""

    def find(self, filter):
        raise AutoReconnect("connection closed")

    async def find_one(self, filter):
        raise AutoReconnect("connection closed")

    async def insert_one(self, doc):
        raise AutoReconnect("connection closed")

    async def update_one(self, filter, update):
        raise AutoReconnect("connection closed")

    async def delete_one(self, filter):
        raise AutoReconnect("connection closed")

    async def delete_many(self, filter):
        raise AutoReconnect("connection closed")


@pytest.mark.parametrize("call", [
    lambda store: store.get_all(),
    lambda store: store.find_by_id("507f1f77bcf86cd799439011"),
    lambda store: store.insert_one(Note(title="t", body="b")),
    lambda store: store.update_one(Note(id=TokenId("507f1f77bcf86cd799439011"), title="t", body="b")),
    lambda store: store.delete_one("507f1f77bcf86cd799439011"),
    lambda store: store.delete_all(),
])
async def test_driver_failure_raises_persistence_error(call):
    store = DocumentNoteStore(FailingCollection())

    with pytest.raises(PersistenceError) as exc_info:
        await call(store)

    assert isinstance(exc_info.value.cause, AutoReconnect)


async def test_close_without_client_is_noop(document_store):
    await document_store.close()


async def test_open_unreachable_raises_connection_error():
    with pytest.raises(errors.ConnectionError):
        await DocumentNoteStore.open("mongodb://127.0.0.1:1", "notes", connect_timeout=1)


@pytest.mark.parametrize("url", ["http://nope", "not a url"])
async def test_open_malformed_url_raises_connection_error(url):
    with pytest.raises(errors.ConnectionError):
        await DocumentNoteStore.open(url, "notes", connect_timeout=1)


async def test_document_missing_fields_reads_as_none(document_store, document_collection):
    oid = ObjectId()
    document_collection.docs[oid] = {"_id": oid, "title": "only title"}

    note = await document_store.find_by_id(str(oid))

    assert note == Note(id=TokenId(str(oid)), title="only title", body=None)
    assert await document_store.get_all() == [note]
