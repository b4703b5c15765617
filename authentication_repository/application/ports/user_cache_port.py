from __future__ import annotations

from typing import Protocol

from authentication_repository.domain.entities.user import User


class UserCachePort(Protocol):
    def read(self, *, key: str) -> User | None:
        ...

    def write(self, *, key: str, value: User) -> None:
        ...
