from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from authentication_repository.application.dto.auth import (
    PhoneVerificationCallbacks,
    ProviderCredential,
    ProviderUser,
    UserCredential,
)


class IdentityProviderPort(Protocol):
    """Remote identity backend. Fallible calls raise ``IdentityProviderError``."""

    async def create_account(self, *, email: str, password: str) -> UserCredential:
        ...

    async def sign_in_with_password(self, *, email: str, password: str) -> UserCredential:
        ...

    async def sign_in_with_credential(self, *, credential: ProviderCredential) -> UserCredential:
        ...

    async def sign_in_with_popup(self, *, provider_id: str) -> UserCredential:
        ...

    async def sign_out(self) -> None:
        ...

    def auth_state_changes(self) -> AsyncIterator[ProviderUser | None]:
        """Fresh subscription per call: the current user first, then every change."""
        ...

    async def verify_phone_number(
        self,
        *,
        phone_number: str,
        resend_token: int | None,
        callbacks: PhoneVerificationCallbacks,
    ) -> None:
        ...
