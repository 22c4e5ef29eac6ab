"""
Note

This package provides the Note entity and the stores that persist it.
"""

from notestore.note.builder import BuilderNoteStore
from notestore.note.document import DocumentNoteStore
from notestore.note.model import IntegerId, Note, NoteId, TokenId
from notestore.note.sql import ConnectionNoteStore, PoolNoteStore
from notestore.note.store import NoteStore

__all__ = [
    "BuilderNoteStore",
    "ConnectionNoteStore",
    "DocumentNoteStore",
    "IntegerId",
    "Note",
    "NoteId",
    "NoteStore",
    "PoolNoteStore",
    "TokenId",
]
