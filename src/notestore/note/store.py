"""
The note store interface.

A NoteStore owns one database handle (connection, pool, engine or client)
and exposes the same async CRUD surface whatever the backend. Concrete
stores live beside this module:

    - ConnectionNoteStore: one shared psycopg connection
    - PoolNoteStore: a psycopg_pool connection pool
    - BuilderNoteStore: SQLAlchemy Core over an async engine
    - DocumentNoteStore: a MongoDB collection

Every operation round-trips to the engine. Driver failures are re-raised as
PersistenceError, chained to the original exception.
"""

import abc
import logging
from contextlib import asynccontextmanager
from typing import Any

from notestore.errors import InvalidIdError, PersistenceError
from notestore.note.model import IntegerId, Note, NoteId

logger = logging.getLogger(__name__)

# Largest key the INTEGER / SERIAL _id column can hold
MAX_INTEGER_ID = 2**31 - 1


@asynccontextmanager
async def translate_errors(operation: str, *driver_errors: type[BaseException]):
    """Re-raise any of ``driver_errors`` as a PersistenceError."""
    try:
        yield
    except driver_errors as exc:
        logger.error("%s failed: %s", operation, exc)
        raise PersistenceError(operation, exc) from exc


class NoteStore(abc.ABC):
    """Async CRUD access to notes over a single backend handle."""

    name: str = ""
    driver_errors: tuple[type[BaseException], ...] = ()

    # =========================================================================
    # Identifiers
    # =========================================================================

    @abc.abstractmethod
    def parse_id(self, raw: Any) -> NoteId:
        """
        Coerce a raw identifier into this store's NoteId type.

        Raises:
            InvalidIdError: if ``raw`` is not well-formed for this store
        """

    def is_valid_id(self, raw: Any) -> bool:
        """Check the format of an identifier. Does not check existence."""
        try:
            self.parse_id(raw)
        except InvalidIdError:
            return False
        return True

    @abc.abstractmethod
    def new_id(self) -> NoteId:
        """Generate a fresh identifier, where the backend supports it."""

    def _require_id(self, note: Note) -> NoteId:
        if note.id is None:
            raise InvalidIdError("Note has no id; insert it before updating")
        return self.parse_id(note.id)

    # =========================================================================
    # CRUD
    # =========================================================================

    @abc.abstractmethod
    async def get_all(self) -> list[Note]:
        """Return every note."""

    @abc.abstractmethod
    async def find_by_id(self, note_id: Any) -> Note | None:
        """Return the note with the given id, or None if there is none."""

    @abc.abstractmethod
    async def insert_one(self, note: Note) -> Note:
        """
        Persist a new note, ignoring any id already on it.

        Returns the same note with its store-assigned id populated.
        """

    @abc.abstractmethod
    async def update_one(self, note: Note) -> Note:
        """
        Overwrite title and body of the note matching ``note.id``.

        Matching nothing is not an error. Returns the input note.
        """

    @abc.abstractmethod
    async def delete_one(self, note_id: Any) -> int:
        """Delete the note with the given id. Returns the number removed."""

    @abc.abstractmethod
    async def delete_all(self) -> None:
        """Delete every note. This is permanent."""

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_schema(self) -> None:
        """Create the notes table if the backend needs one."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release the handle owned by this store."""

    def _guard(self, operation: str):
        return translate_errors(f"{self.name}.{operation}", *self.driver_errors)


class IntegerIdStore(NoteStore):
    """Base for relational stores whose ids are server-side auto-increments."""

    def parse_id(self, raw: Any) -> IntegerId:
        if isinstance(raw, IntegerId):
            value = raw.value
        elif isinstance(raw, bool):
            raise InvalidIdError(f"Not a note id: {raw!r}")
        elif isinstance(raw, int):
            value = raw
        elif isinstance(raw, str) and raw.isascii() and raw.isdigit():
            value = int(raw)
        else:
            raise InvalidIdError(f"Not a note id: {raw!r}")

        if not 0 < value <= MAX_INTEGER_ID:
            raise InvalidIdError(f"Note id out of range: {value}")
        return IntegerId(value)

    def new_id(self) -> IntegerId:
        raise NotImplementedError(
            f"{self.name} store assigns ids on insert; use insert_one()"
        )
