from __future__ import annotations

from collections.abc import Awaitable, Callable
import asyncio
import logging

from google.auth.transport import requests
from google.oauth2 import id_token

from authentication_repository.application.dto.auth import FederatedTokens
from authentication_repository.application.ports.federated_sign_in_port import FederatedSignInPort
from authentication_repository.domain.exceptions import GoogleTokenValidationError


logger = logging.getLogger(__name__)


TokenSource = Callable[[], Awaitable[FederatedTokens | None]]


class GoogleSignInClient(FederatedSignInPort):
    """Google sign-in round trip: tokens come from ``token_source`` and the ID token is checked against the client id."""

    def __init__(self, *, client_id: str, token_source: TokenSource):
        self._client_id = client_id
        self._token_source = token_source
        self._signed_in_subject: str | None = None

    @property
    def signed_in_subject(self) -> str | None:
        return self._signed_in_subject

    async def sign_in(self) -> FederatedTokens | None:
        tokens = await self._token_source()
        if tokens is None:
            return None
        if not tokens.id_token and not tokens.access_token:
            raise GoogleTokenValidationError("Google sign-in returned no tokens.")
        if tokens.id_token:
            claims = await asyncio.to_thread(self._verify_id_token, tokens.id_token)
            self._signed_in_subject = str(claims["sub"])
            logger.info("google_sign_in_client: signed_in subject=%s", self._signed_in_subject)
        return tokens

    async def sign_out(self) -> None:
        self._signed_in_subject = None

    def _verify_id_token(self, token: str) -> dict:
        try:
            payload = id_token_verify(token=token, audience=self._client_id)
        except Exception as exc:  # pragma: no cover - depends on external validation errors
            raise GoogleTokenValidationError("Invalid Google id_token.") from exc

        if not payload.get("sub"):
            raise GoogleTokenValidationError("Google id_token missing required claims.")
        return payload


def id_token_verify(*, token: str, audience: str) -> dict:
    request = requests.Request()
    return id_token.verify_oauth2_token(token, request, audience)
