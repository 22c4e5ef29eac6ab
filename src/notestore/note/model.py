import re
from dataclasses import dataclass, field
from typing import Union

TOKEN_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


@dataclass(frozen=True)
class IntegerId:
    """Auto-increment primary key assigned by a relational engine."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TokenId:
    """12-byte document identifier, held as 24 lowercase hex characters."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not TOKEN_PATTERN.match(self.value):
            raise ValueError(f"Not a 24-character hex token: {self.value!r}")
        object.__setattr__(self, "value", self.value.lower())

    def __str__(self) -> str:
        return self.value


NoteId = Union[IntegerId, TokenId]


@dataclass
class Note:
    """
    A note entity.

    ``id`` is None until a store assigns one on insert.
    """

    title: str
    body: str
    id: NoteId | None = field(default=None)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id) if self.id is not None else None,
            "title": self.title,
            "body": self.body,
        }
