from __future__ import annotations

from authentication_repository.application.dto.auth import LoginEmailInput
from authentication_repository.application.ports.identity_provider_port import IdentityProviderPort

from .auth_common import normalize_email, provider_failures


class LoginEmailUseCase:
    def __init__(self, *, identity_provider: IdentityProviderPort):
        self._identity_provider = identity_provider

    async def execute(self, command: LoginEmailInput) -> None:
        with provider_failures("log_in_email"):
            await self._identity_provider.sign_in_with_password(
                email=normalize_email(command.email),
                password=command.password,
            )
