from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

from authentication_repository.domain.exceptions import IdentityProviderError


GOOGLE_PROVIDER_ID = "google.com"
PHONE_PROVIDER_ID = "phone"

CredentialProvider = Literal["google.com", "phone"]


@dataclass(frozen=True)
class ProviderUser:
    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    phone_number: str | None = None


@dataclass(frozen=True)
class ProviderCredential:
    provider_id: CredentialProvider
    id_token: str | None = None
    access_token: str | None = None
    verification_id: str | None = None
    sms_code: str | None = None

    @classmethod
    def google(cls, *, id_token: str | None, access_token: str | None) -> ProviderCredential:
        return cls(provider_id=GOOGLE_PROVIDER_ID, id_token=id_token, access_token=access_token)

    @classmethod
    def phone(cls, *, verification_id: str, sms_code: str) -> ProviderCredential:
        return cls(provider_id=PHONE_PROVIDER_ID, verification_id=verification_id, sms_code=sms_code)


@dataclass(frozen=True)
class UserCredential:
    user: ProviderUser | None
    credential: ProviderCredential | None = None


@dataclass(frozen=True)
class FederatedTokens:
    id_token: str | None
    access_token: str | None


@dataclass(frozen=True)
class PhoneVerificationCallbacks:
    on_auto_verified: Callable[[ProviderCredential], Awaitable[None]]
    on_failed: Callable[[IdentityProviderError], Awaitable[None]]
    on_code_sent: Callable[[str, int | None], Awaitable[None]]
    on_timeout: Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class SignUpInput:
    email: str
    password: str


@dataclass(frozen=True)
class LoginEmailInput:
    email: str
    password: str


@dataclass(frozen=True)
class PhoneLoginInput:
    country_code: str
    phone_number: str


@dataclass(frozen=True)
class VerifyOtpInput:
    sms_code: str
