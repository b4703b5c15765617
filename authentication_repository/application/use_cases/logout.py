from __future__ import annotations

import asyncio
import logging

from authentication_repository.application.ports.federated_sign_in_port import FederatedSignInPort
from authentication_repository.application.ports.identity_provider_port import IdentityProviderPort
from authentication_repository.domain.exceptions import LogOutFailure


logger = logging.getLogger(__name__)


class LogoutUseCase:
    def __init__(
        self,
        *,
        identity_provider: IdentityProviderPort,
        federated_sign_in: FederatedSignInPort,
    ):
        self._identity_provider = identity_provider
        self._federated_sign_in = federated_sign_in

    async def execute(self) -> None:
        results = await asyncio.gather(
            self._identity_provider.sign_out(),
            self._federated_sign_in.sign_out(),
            return_exceptions=True,
        )
        errors = [result for result in results if isinstance(result, BaseException)]
        if not errors:
            return
        for error in errors:
            if not isinstance(error, Exception):
                raise error
        logger.info("logout: sign_out_failed errors=%s", [type(error).__name__ for error in errors])
        raise LogOutFailure() from errors[0]
