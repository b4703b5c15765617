from __future__ import annotations

import logging

from authentication_repository.application.dto.auth import GOOGLE_PROVIDER_ID, ProviderCredential
from authentication_repository.application.ports.federated_sign_in_port import FederatedSignInPort
from authentication_repository.application.ports.identity_provider_port import IdentityProviderPort
from authentication_repository.domain.exceptions import LogInWithGoogleFailure

from .auth_common import provider_failures


logger = logging.getLogger(__name__)


class LoginGoogleUseCase:
    def __init__(
        self,
        *,
        identity_provider: IdentityProviderPort,
        federated_sign_in: FederatedSignInPort,
        use_popup_flow: bool = False,
    ):
        self._identity_provider = identity_provider
        self._federated_sign_in = federated_sign_in
        self.use_popup_flow = use_popup_flow

    async def execute(self) -> None:
        with provider_failures("log_in_federated"):
            credential = await self._obtain_credential()
            await self._identity_provider.sign_in_with_credential(credential=credential)

    async def _obtain_credential(self) -> ProviderCredential:
        if self.use_popup_flow:
            result = await self._identity_provider.sign_in_with_popup(provider_id=GOOGLE_PROVIDER_ID)
            if result.credential is None:
                raise LogInWithGoogleFailure()
            return result.credential

        tokens = await self._federated_sign_in.sign_in()
        if tokens is None:
            logger.info("login_google: federated_sign_in_abandoned")
            raise LogInWithGoogleFailure()
        return ProviderCredential.google(id_token=tokens.id_token, access_token=tokens.access_token)
