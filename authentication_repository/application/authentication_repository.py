from __future__ import annotations

from collections.abc import AsyncIterator
import logging

from authentication_repository.application.dto.auth import (
    LoginEmailInput,
    PhoneLoginInput,
    SignUpInput,
    VerifyOtpInput,
)
from authentication_repository.application.ports.federated_sign_in_port import FederatedSignInPort
from authentication_repository.application.ports.identity_provider_port import IdentityProviderPort
from authentication_repository.application.ports.user_cache_port import UserCachePort
from authentication_repository.application.use_cases.auth_common import to_user
from authentication_repository.application.use_cases.login_email import LoginEmailUseCase
from authentication_repository.application.use_cases.login_google import LoginGoogleUseCase
from authentication_repository.application.use_cases.login_phone import (
    PhoneVerificationCoordinator,
    PhoneVerificationFlow,
)
from authentication_repository.application.use_cases.logout import LogoutUseCase
from authentication_repository.application.use_cases.sign_up import SignUpUseCase
from authentication_repository.domain.entities.phone_auth import PhoneAuthCred
from authentication_repository.domain.entities.user import User
from authentication_repository.domain.services.failure_taxonomy import failure_from_code


logger = logging.getLogger(__name__)


class AuthenticationRepository:
    """Session facade over the identity provider, the federated sign-in client and the user cache.

    Every operation raises the failure type of its family
    (``SignUpWithEmailAndPasswordFailure``, ``LogInWithEmailAndPasswordFailure``,
    ``LogInWithGoogleFailure``, ``LogInWithPhoneNumberFailure``) or ``LogOutFailure``.
    """

    user_cache_key = "__user_cache_key__"

    def __init__(
        self,
        *,
        identity_provider: IdentityProviderPort,
        federated_sign_in: FederatedSignInPort,
        cache: UserCachePort,
        use_popup_flow: bool = False,
    ):
        self._identity_provider = identity_provider
        self._cache = cache
        self._sign_up = SignUpUseCase(identity_provider=identity_provider)
        self._login_email = LoginEmailUseCase(identity_provider=identity_provider)
        self._login_google = LoginGoogleUseCase(
            identity_provider=identity_provider,
            federated_sign_in=federated_sign_in,
            use_popup_flow=use_popup_flow,
        )
        self._logout = LogoutUseCase(
            identity_provider=identity_provider,
            federated_sign_in=federated_sign_in,
        )
        self._phone = PhoneVerificationCoordinator(identity_provider=identity_provider)

    @property
    def use_popup_flow(self) -> bool:
        return self._login_google.use_popup_flow

    @use_popup_flow.setter
    def use_popup_flow(self, value: bool) -> None:
        self._login_google.use_popup_flow = value

    @property
    def user(self) -> AsyncIterator[User]:
        """Emits the current user on every authentication state change, ``User.empty`` when signed out."""
        return self._user_stream()

    async def _user_stream(self) -> AsyncIterator[User]:
        async for provider_user in self._identity_provider.auth_state_changes():
            user = to_user(provider_user)
            self._cache.write(key=self.user_cache_key, value=user)
            logger.debug("authentication_repository: user_changed authenticated=%s", user.is_not_empty)
            yield user

    @property
    def current_user(self) -> User:
        cached = self._cache.read(key=self.user_cache_key)
        return cached if cached is not None else User.empty

    @property
    def phone_auth_flow(self) -> PhoneVerificationFlow | None:
        return self._phone.current_flow

    @property
    def phone_auth_credential(self) -> AsyncIterator[PhoneAuthCred]:
        flow = self._phone.current_flow
        if flow is None:
            raise failure_from_code("log_in_phone", "code-not-sent")
        return flow.events()

    async def sign_up(self, *, email: str, password: str) -> None:
        await self._sign_up.execute(SignUpInput(email=email, password=password))

    async def log_in_with_email_and_password(self, *, email: str, password: str) -> None:
        await self._login_email.execute(LoginEmailInput(email=email, password=password))

    async def log_in_with_google(self) -> None:
        await self._login_google.execute()

    async def log_in_with_phone_number(
        self,
        *,
        country_code: str,
        phone_number: str,
    ) -> PhoneVerificationFlow:
        return await self._phone.start(
            PhoneLoginInput(country_code=country_code, phone_number=phone_number)
        )

    async def verify_otp(self, *, sms_code: str) -> bool:
        return await self._phone.verify_otp(VerifyOtpInput(sms_code=sms_code))

    async def log_out(self) -> None:
        self._phone.cancel()
        await self._logout.execute()
