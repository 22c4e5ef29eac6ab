"""
Note store backed by a MongoDB collection.

Documents have the shape ``{_id: ObjectId, title, body}``. Identifiers are
ObjectIds, surfaced to callers as TokenId (24 hex characters).
"""

import logging
from typing import Any

from bson import ObjectId
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from notestore import errors
from notestore.errors import InvalidIdError
from notestore.note.model import Note, TokenId
from notestore.note.store import NoteStore

logger = logging.getLogger(__name__)

COLLECTION = "notes"


class DocumentNoteStore(NoteStore):
    """Note store over a collection; get_all() returns natural order."""

    name = "document"
    driver_errors = (PyMongoError,)

    def __init__(self, collection, client: AsyncMongoClient | None = None):
        self.collection = collection
        self.client = client

    @classmethod
    async def open(
        cls,
        url: str,
        database: str,
        connect_timeout: int = 10,
    ) -> "DocumentNoteStore":
        """
        Create the client and ping the server.

        Raises:
            ConnectionError: if no server answers within ``connect_timeout``
        """
        logger.info("Connecting to MongoDB...")
        client = None
        try:
            client = AsyncMongoClient(url, serverSelectionTimeoutMS=connect_timeout * 1000)
            await client.admin.command("ping")
        except PyMongoError as exc:
            if client is not None:
                await client.close()
            logger.error("Error connecting: %s", exc)
            raise errors.ConnectionError(f"Could not connect to MongoDB: {exc}") from exc
        logger.info("Connected to MongoDB, using %s.%s", database, COLLECTION)
        return cls(client[database][COLLECTION], client=client)

    # =========================================================================
    # Identifiers
    # =========================================================================

    def parse_id(self, raw: Any) -> TokenId:
        if isinstance(raw, TokenId):
            return raw
        if isinstance(raw, ObjectId):
            return TokenId(str(raw))
        if isinstance(raw, str) and len(raw) == 24 and ObjectId.is_valid(raw):
            return TokenId(raw)
        raise InvalidIdError(f"Not a note id: {raw!r}")

    def new_id(self) -> TokenId:
        return TokenId(str(ObjectId()))

    # =========================================================================
    # CRUD
    # =========================================================================

    async def get_all(self) -> list[Note]:
        async with self._guard("get_all"):
            docs = await self.collection.find({}).to_list(None)
        return [self._to_note(doc) for doc in docs]

    async def find_by_id(self, note_id: Any) -> Note | None:
        note_id = self.parse_id(note_id)
        async with self._guard("find_by_id"):
            doc = await self.collection.find_one({"_id": ObjectId(note_id.value)})
        return self._to_note(doc) if doc else None

    async def insert_one(self, note: Note) -> Note:
        async with self._guard("insert_one"):
            result = await self.collection.insert_one(
                {"title": note.title, "body": note.body}
            )
        note.id = TokenId(str(result.inserted_id))
        logger.debug("Inserted note %s", note.id)
        return note

    async def update_one(self, note: Note) -> Note:
        note_id = self._require_id(note)
        async with self._guard("update_one"):
            await self.collection.update_one(
                {"_id": ObjectId(note_id.value)},
                {"$set": {"title": note.title, "body": note.body}},
            )
        return note

    async def delete_one(self, note_id: Any) -> int:
        note_id = self.parse_id(note_id)
        async with self._guard("delete_one"):
            result = await self.collection.delete_one({"_id": ObjectId(note_id.value)})
        return result.deleted_count

    async def delete_all(self) -> None:
        async with self._guard("delete_all"):
            await self.collection.delete_many({})

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            logger.info("MongoDB client closed")

    @staticmethod
    def _to_note(doc: dict) -> Note:
        return Note(id=TokenId(str(doc["_id"])), title=doc.get("title"), body=doc.get("body"))
