"""
Note store built on SQLAlchemy Core.

Queries are composed with the expression language rather than SQL strings,
so the same store runs against Postgres in production and SQLite in tests.
"""

import logging
from typing import Any

from sqlalchemy import Column, Integer, MetaData, Table, Text, delete, insert, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from notestore import errors
from notestore.note.model import IntegerId, Note
from notestore.note.store import IntegerIdStore

logger = logging.getLogger(__name__)

metadata = MetaData()

notes = Table(
    "notes",
    metadata,
    Column("_id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text),
    Column("body", Text),
)


def normalize_url(url: str) -> str:
    """
    Point a plain Postgres URL at the async psycopg dialect.

    Accepts:
    - postgresql://...
    - postgresql+psycopg://...
    - any other SQLAlchemy URL, returned unchanged
    """
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


class BuilderNoteStore(IntegerIdStore):
    """Note store over an AsyncEngine. get_all() is ordered by title."""

    name = "builder"
    driver_errors = (SQLAlchemyError,)

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @classmethod
    async def open(cls, url: str) -> "BuilderNoteStore":
        """
        Create the engine and check that it can connect.

        Raises:
            ConnectionError: if the first connection fails
        """
        engine = None
        try:
            engine = create_async_engine(normalize_url(url), pool_pre_ping=True)
            logger.info(
                "Connecting engine to %s...", engine.url.render_as_string(hide_password=True)
            )
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            if engine is not None:
                await engine.dispose()
            logger.error("Error connecting: %s", exc)
            raise errors.ConnectionError(f"Could not connect to database: {exc}") from exc
        logger.info("Engine connected")
        return cls(engine)

    async def get_all(self) -> list[Note]:
        async with self._guard("get_all"):
            async with self.engine.connect() as conn:
                result = await conn.execute(select(notes).order_by(notes.c.title))
                rows = result.mappings().all()
        return [self._to_note(row) for row in rows]

    async def find_by_id(self, note_id: Any) -> Note | None:
        note_id = self.parse_id(note_id)
        async with self._guard("find_by_id"):
            async with self.engine.connect() as conn:
                result = await conn.execute(select(notes).where(notes.c._id == note_id.value))
                row = result.mappings().first()
        return self._to_note(row) if row else None

    async def insert_one(self, note: Note) -> Note:
        async with self._guard("insert_one"):
            async with self.engine.begin() as conn:
                result = await conn.execute(
                    insert(notes).values(title=note.title, body=note.body)
                )
                note.id = IntegerId(result.inserted_primary_key[0])
        logger.debug("Inserted note %s", note.id)
        return note

    async def update_one(self, note: Note) -> Note:
        note_id = self._require_id(note)
        async with self._guard("update_one"):
            async with self.engine.begin() as conn:
                await conn.execute(
                    update(notes)
                    .where(notes.c._id == note_id.value)
                    .values(title=note.title, body=note.body)
                )
        return note

    async def delete_one(self, note_id: Any) -> int:
        note_id = self.parse_id(note_id)
        async with self._guard("delete_one"):
            async with self.engine.begin() as conn:
                result = await conn.execute(delete(notes).where(notes.c._id == note_id.value))
                return result.rowcount

    async def delete_all(self) -> None:
        async with self._guard("delete_all"):
            async with self.engine.begin() as conn:
                await conn.execute(delete(notes))

    async def create_schema(self) -> None:
        async with self._guard("create_schema"):
            async with self.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Engine disposed")

    @staticmethod
    def _to_note(row) -> Note:
        return Note(id=IntegerId(row["_id"]), title=row["title"], body=row["body"])
