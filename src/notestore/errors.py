"""
Error taxonomy for note stores.

Every backend failure surfaces as one of these, chained to the driver's
native exception. A missing note is never an error: lookups return None
and updates or deletes of an absent id are silent no-ops.
"""

import builtins


class NoteStoreError(Exception):
    """Base class for all note store errors."""


class ConnectionError(NoteStoreError, builtins.ConnectionError):
    """The initial connection, pool or client could not be established."""


class PersistenceError(NoteStoreError):
    """
    A backend rejected a CRUD call.

    The driver's exception is kept as ``cause`` and as ``__cause__``.
    """

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class InvalidIdError(NoteStoreError, ValueError):
    """An identifier is malformed for the store it was passed to."""
