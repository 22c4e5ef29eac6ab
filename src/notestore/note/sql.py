"""
Note stores backed by psycopg.

ConnectionNoteStore issues every statement on one shared AsyncConnection.
PoolNoteStore borrows a connection from an AsyncConnectionPool per call.
Both run in autocommit mode, so each statement is its own transaction.
"""

import abc
import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, AsyncIterator

import psycopg
from psycopg import AsyncConnection
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from notestore import errors
from notestore.note.model import IntegerId, Note
from notestore.note.store import IntegerIdStore

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS notes (
        _id SERIAL PRIMARY KEY,
        title TEXT,
        body TEXT
    )
"""


def row_to_note(row: dict[str, Any]) -> Note:
    return Note(id=IntegerId(row["_id"]), title=row["title"], body=row["body"])


class PsycopgNoteStore(IntegerIdStore):
    """
    Shared SQL for the psycopg stores.

    Subclasses only decide where a connection comes from.
    """

    driver_errors = (psycopg.Error,)

    @abc.abstractmethod
    def _connection(self) -> AbstractAsyncContextManager[AsyncConnection]:
        """Async context manager yielding a connection for one statement."""

    # =========================================================================
    # Query Helpers
    # =========================================================================

    async def _execute(self, query: str, params: tuple = None) -> int:
        """Run a statement and return the affected row count."""
        async with self._connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return cur.rowcount

    async def _fetch_one(self, query: str, params: tuple = None) -> dict[str, Any] | None:
        async with self._connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, params)
                return await cur.fetchone()

    async def _fetch_all(self, query: str, params: tuple = None) -> list[dict[str, Any]]:
        async with self._connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, params)
                return await cur.fetchall()

    # =========================================================================
    # CRUD
    # =========================================================================

    async def get_all(self) -> list[Note]:
        async with self._guard("get_all"):
            rows = await self._fetch_all("SELECT * FROM notes")
        return [row_to_note(row) for row in rows]

    async def find_by_id(self, note_id: Any) -> Note | None:
        note_id = self.parse_id(note_id)
        async with self._guard("find_by_id"):
            row = await self._fetch_one(
                "SELECT * FROM notes WHERE _id = %s", (note_id.value,)
            )
        return row_to_note(row) if row else None

    async def insert_one(self, note: Note) -> Note:
        async with self._guard("insert_one"):
            row = await self._fetch_one(
                "INSERT INTO notes (title, body) VALUES (%s, %s) RETURNING _id",
                (note.title, note.body),
            )
        note.id = IntegerId(row["_id"])
        logger.debug("Inserted note %s", note.id)
        return note

    async def update_one(self, note: Note) -> Note:
        note_id = self._require_id(note)
        async with self._guard("update_one"):
            await self._execute(
                "UPDATE notes SET title = %s, body = %s WHERE _id = %s",
                (note.title, note.body, note_id.value),
            )
        return note

    async def delete_one(self, note_id: Any) -> int:
        note_id = self.parse_id(note_id)
        async with self._guard("delete_one"):
            return await self._execute(
                "DELETE FROM notes WHERE _id = %s", (note_id.value,)
            )

    async def delete_all(self) -> None:
        async with self._guard("delete_all"):
            await self._execute("TRUNCATE TABLE notes")

    async def create_schema(self) -> None:
        async with self._guard("create_schema"):
            await self._execute(SCHEMA)


class ConnectionNoteStore(PsycopgNoteStore):
    """Note store over a single AsyncConnection, reused for every call."""

    name = "connection"

    def __init__(self, conn: AsyncConnection):
        self.conn = conn

    @classmethod
    async def connect(cls, conninfo: str, connect_timeout: int = 10) -> "ConnectionNoteStore":
        """
        Open the shared connection.

        Raises:
            ConnectionError: if the server cannot be reached
        """
        logger.info("Connecting to database...")
        try:
            conn = await AsyncConnection.connect(
                conninfo,
                autocommit=True,
                connect_timeout=connect_timeout,
            )
        except psycopg.Error as exc:
            logger.error("Error connecting: %s", exc)
            raise errors.ConnectionError(f"Could not connect to database: {exc}") from exc
        logger.info("Connected, backend pid %s", conn.info.backend_pid)
        return cls(conn)

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[AsyncConnection]:
        yield self.conn

    async def close(self) -> None:
        if not self.conn.closed:
            await self.conn.close()
            logger.info("Database connection closed")


class PoolNoteStore(PsycopgNoteStore):
    """Note store over an AsyncConnectionPool; each call borrows a connection."""

    name = "pool"

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    @classmethod
    async def open(
        cls,
        conninfo: str,
        min_size: int = 1,
        max_size: int = 10,
        timeout: float = 10,
    ) -> "PoolNoteStore":
        """
        Create the pool and wait for its first connections.

        Raises:
            ConnectionError: if the pool cannot fill within ``timeout``
        """
        logger.info("Opening connection pool (min=%s, max=%s)...", min_size, max_size)
        pool = None
        try:
            pool = AsyncConnectionPool(
                conninfo,
                min_size=min_size,
                max_size=max_size,
                timeout=timeout,
                kwargs={"autocommit": True},
                name="notestore",
                open=False,
            )
            await pool.open(wait=True, timeout=timeout)
        except psycopg.Error as exc:
            if pool is not None:
                await pool.close()
            logger.error("Error opening pool: %s", exc)
            raise errors.ConnectionError(f"Could not open connection pool: {exc}") from exc
        logger.info("Connection pool ready")
        return cls(pool)

    def _connection(self):
        return self.pool.connection()

    async def close(self) -> None:
        if not self.pool.closed:
            await self.pool.close()
            logger.info("Connection pool closed")
