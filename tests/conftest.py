from __future__ import annotations

import pytest

from authentication_repository.application.authentication_repository import AuthenticationRepository
from authentication_repository.application.dto.auth import (
    FederatedTokens,
    PhoneVerificationCallbacks,
    ProviderCredential,
    ProviderUser,
    UserCredential,
)
from authentication_repository.application.streams import EventChannel
from authentication_repository.domain.exceptions import IdentityProviderError
from authentication_repository.infrastructure.cache.memory_cache import InMemoryCache


class FakeIdentityProvider:
    def __init__(self):
        self.errors: dict[str, BaseException] = {}
        self.calls: list[str] = []
        self.credentials: list[ProviderCredential] = []
        self.phone_requests: list[dict] = []
        self.callbacks: PhoneVerificationCallbacks | None = None
        self.expected_sms_code = "123456"
        self.signed_in_user = ProviderUser(
            uid="user-1",
            email="user@example.com",
            display_name="User",
            photo_url="https://example.com/user.png",
        )
        self.current: ProviderUser | None = None
        self._auth_state: EventChannel[ProviderUser | None] = EventChannel()

    def _record(self, name: str) -> None:
        self.calls.append(name)
        error = self.errors.get(name)
        if error is not None:
            raise error

    def _sign_in(self, credential: ProviderCredential | None = None) -> UserCredential:
        self.current = self.signed_in_user
        self._auth_state.add(self.current)
        return UserCredential(user=self.current, credential=credential)

    async def create_account(self, *, email: str, password: str) -> UserCredential:
        self._record("create_account")
        return self._sign_in()

    async def sign_in_with_password(self, *, email: str, password: str) -> UserCredential:
        self._record("sign_in_with_password")
        return self._sign_in()

    async def sign_in_with_credential(self, *, credential: ProviderCredential) -> UserCredential:
        self.credentials.append(credential)
        self._record("sign_in_with_credential")
        if credential.provider_id == "phone" and credential.sms_code != self.expected_sms_code:
            raise IdentityProviderError("invalid-verification-code")
        return self._sign_in(credential)

    async def sign_in_with_popup(self, *, provider_id: str) -> UserCredential:
        self._record("sign_in_with_popup")
        return UserCredential(
            user=None,
            credential=ProviderCredential.google(id_token="popup-id-token", access_token="popup-access-token"),
        )

    async def sign_out(self) -> None:
        self._record("sign_out")
        self.current = None
        self._auth_state.add(None)

    async def auth_state_changes(self):
        subscription = self._auth_state.subscribe()
        yield self.current
        async for user in subscription:
            yield user

    async def verify_phone_number(
        self,
        *,
        phone_number: str,
        resend_token: int | None,
        callbacks: PhoneVerificationCallbacks,
    ) -> None:
        self.phone_requests.append({"phone_number": phone_number, "resend_token": resend_token})
        self._record("verify_phone_number")
        self.callbacks = callbacks


class FakeFederatedSignIn:
    def __init__(self):
        self.tokens: FederatedTokens | None = FederatedTokens(
            id_token="google-id-token",
            access_token="google-access-token",
        )
        self.sign_out_error: BaseException | None = None
        self.sign_out_calls = 0

    async def sign_in(self) -> FederatedTokens | None:
        return self.tokens

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.sign_out_error is not None:
            raise self.sign_out_error


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def federated_sign_in() -> FakeFederatedSignIn:
    return FakeFederatedSignIn()


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def repository(
    identity_provider: FakeIdentityProvider,
    federated_sign_in: FakeFederatedSignIn,
    cache: InMemoryCache,
) -> AuthenticationRepository:
    return AuthenticationRepository(
        identity_provider=identity_provider,
        federated_sign_in=federated_sign_in,
        cache=cache,
    )
