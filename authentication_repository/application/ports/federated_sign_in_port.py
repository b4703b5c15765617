from __future__ import annotations

from typing import Protocol

from authentication_repository.application.dto.auth import FederatedTokens


class FederatedSignInPort(Protocol):
    async def sign_in(self) -> FederatedTokens | None:
        """Returns ``None`` when the user abandoned the sign-in."""
        ...

    async def sign_out(self) -> None:
        ...
