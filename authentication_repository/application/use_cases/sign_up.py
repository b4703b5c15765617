from __future__ import annotations

from authentication_repository.application.dto.auth import SignUpInput
from authentication_repository.application.ports.identity_provider_port import IdentityProviderPort

from .auth_common import normalize_email, provider_failures


class SignUpUseCase:
    def __init__(self, *, identity_provider: IdentityProviderPort):
        self._identity_provider = identity_provider

    async def execute(self, command: SignUpInput) -> None:
        with provider_failures("sign_up"):
            await self._identity_provider.create_account(
                email=normalize_email(command.email),
                password=command.password,
            )
