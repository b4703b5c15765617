from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class User:
    id: str
    email: str | None = None
    name: str | None = None
    photo: str | None = None

    empty: ClassVar[User]

    @property
    def is_empty(self) -> bool:
        return self == User.empty

    @property
    def is_not_empty(self) -> bool:
        return self != User.empty


User.empty = User(id="")
