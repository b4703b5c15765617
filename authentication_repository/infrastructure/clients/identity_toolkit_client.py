from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from urllib.parse import urlencode
import asyncio
import logging
import re

import httpx

from authentication_repository.application.dto.auth import (
    GOOGLE_PROVIDER_ID,
    PHONE_PROVIDER_ID,
    PhoneVerificationCallbacks,
    ProviderCredential,
    ProviderUser,
    UserCredential,
)
from authentication_repository.application.ports.identity_provider_port import IdentityProviderPort
from authentication_repository.application.streams import EventChannel
from authentication_repository.domain.exceptions import IdentityProviderError
from authentication_repository.infrastructure.clients.identity_toolkit_schemas import (
    IdpSignInResponse,
    SendVerificationCodeResponse,
    SignInResponse,
    ToolkitErrorResponse,
)


logger = logging.getLogger(__name__)


REST_ERROR_CODES = {
    "EMAIL_EXISTS": "email-already-in-use",
    "INVALID_EMAIL": "invalid-email",
    "WEAK_PASSWORD": "weak-password",
    "OPERATION_NOT_ALLOWED": "operation-not-allowed",
    "ADMIN_ONLY_OPERATION": "operation-not-allowed",
    "EMAIL_NOT_FOUND": "user-not-found",
    "USER_NOT_FOUND": "user-not-found",
    "INVALID_PASSWORD": "wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "invalid-credential",
    "USER_DISABLED": "user-disabled",
    "INVALID_IDP_RESPONSE": "invalid-credential",
    "FEDERATED_USER_ID_ALREADY_LINKED": "credential-already-in-use",
    "INVALID_PHONE_NUMBER": "invalid-phone-number",
    "MISSING_PHONE_NUMBER": "missing-phone-number",
    "INVALID_CODE": "invalid-verification-code",
    "MISSING_CODE": "missing-verification-code",
    "INVALID_SESSION_INFO": "invalid-verification-id",
    "MISSING_SESSION_INFO": "missing-verification-id",
    "SESSION_EXPIRED": "code-expired",
    "QUOTA_EXCEEDED": "quota-exceeded",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "too-many-requests",
    "CAPTCHA_CHECK_FAILED": "captcha-check-failed",
    "INVALID_API_KEY": "invalid-api-key",
}


def provider_code_from_message(message: str) -> str:
    """Maps an Identity Toolkit error message ("WEAK_PASSWORD : ...") to a provider code."""
    match = re.match(r"[A-Z0-9_]+", message.strip())
    if match is None:
        return "internal-error"
    key = match.group(0)
    return REST_ERROR_CODES.get(key, key.lower().replace("_", "-"))


@dataclass(frozen=True)
class IdentityToolkitClientSettings:
    api_key: str
    base_url: str
    timeout_seconds: float
    auto_retrieval_timeout_seconds: float
    recaptcha_token: str = ""
    request_uri: str = "http://localhost"


@dataclass(frozen=True)
class _Session:
    user: ProviderUser
    id_token: str
    refresh_token: str | None


class IdentityToolkitClient(IdentityProviderPort):
    """Identity provider backed by the Google Identity Toolkit REST API.

    Keeps the signed-in session in memory and broadcasts every change to
    ``auth_state_changes`` subscribers. Phone verification is delivered through
    the callbacks: code dispatch, then the auto-retrieval timeout once the
    configured window elapses. SMS auto-retrieval is not available over REST, so
    the auto-verification callback is never invoked, and code dispatch carries
    no resend token.
    """

    def __init__(
        self,
        settings: IdentityToolkitClientSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport
        self._session: _Session | None = None
        self._auth_state: EventChannel[ProviderUser | None] = EventChannel()
        self._timeout_tasks: set[asyncio.Task] = set()

    @property
    def current_user(self) -> ProviderUser | None:
        return self._session.user if self._session is not None else None

    @property
    def id_token(self) -> str | None:
        return self._session.id_token if self._session is not None else None

    async def create_account(self, *, email: str, password: str) -> UserCredential:
        payload = await self._post(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._establish_session(SignInResponse.model_validate(payload))

    async def sign_in_with_password(self, *, email: str, password: str) -> UserCredential:
        payload = await self._post(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._establish_session(SignInResponse.model_validate(payload))

    async def sign_in_with_credential(self, *, credential: ProviderCredential) -> UserCredential:
        if credential.provider_id == GOOGLE_PROVIDER_ID:
            return await self._sign_in_with_idp(credential)
        if credential.provider_id == PHONE_PROVIDER_ID:
            return await self._sign_in_with_phone_number(credential)
        raise IdentityProviderError("invalid-credential")

    async def sign_in_with_popup(self, *, provider_id: str) -> UserCredential:
        raise IdentityProviderError(
            "operation-not-supported-in-this-environment",
            f"Popup sign-in with {provider_id} requires a browser environment.",
        )

    async def sign_out(self) -> None:
        self._cancel_timeouts()
        if self._session is None:
            return
        self._session = None
        logger.info("identity_toolkit_client: signed_out")
        self._auth_state.add(None)

    async def auth_state_changes(self) -> AsyncIterator[ProviderUser | None]:
        subscription = self._auth_state.subscribe()
        yield self.current_user
        async for user in subscription:
            yield user

    async def verify_phone_number(
        self,
        *,
        phone_number: str,
        resend_token: int | None,
        callbacks: PhoneVerificationCallbacks,
    ) -> None:
        body = {"phoneNumber": phone_number}
        if self._settings.recaptcha_token:
            body["recaptchaToken"] = self._settings.recaptcha_token
        try:
            payload = await self._post("accounts:sendVerificationCode", body)
            response = SendVerificationCodeResponse.model_validate(payload)
        except IdentityProviderError as exc:
            await callbacks.on_failed(exc)
            return

        await callbacks.on_code_sent(response.session_info, None)
        self._schedule_retrieval_timeout(response.session_info, callbacks)

    async def close(self) -> None:
        self._cancel_timeouts()
        self._auth_state.close()

    async def _sign_in_with_idp(self, credential: ProviderCredential) -> UserCredential:
        params = {"providerId": GOOGLE_PROVIDER_ID}
        if credential.id_token:
            params["id_token"] = credential.id_token
        if credential.access_token:
            params["access_token"] = credential.access_token
        if len(params) == 1:
            raise IdentityProviderError("invalid-credential")

        payload = await self._post(
            "accounts:signInWithIdp",
            {
                "postBody": urlencode(params),
                "requestUri": self._settings.request_uri,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        response = IdpSignInResponse.model_validate(payload)
        if response.need_confirmation:
            raise IdentityProviderError("account-exists-with-different-credential")
        return self._establish_session(
            response,
            credential=ProviderCredential.google(
                id_token=response.oauth_id_token or credential.id_token,
                access_token=response.oauth_access_token or credential.access_token,
            ),
        )

    async def _sign_in_with_phone_number(self, credential: ProviderCredential) -> UserCredential:
        if not credential.verification_id:
            raise IdentityProviderError("missing-verification-id")
        if not credential.sms_code:
            raise IdentityProviderError("missing-verification-code")
        payload = await self._post(
            "accounts:signInWithPhoneNumber",
            {"sessionInfo": credential.verification_id, "code": credential.sms_code},
        )
        return self._establish_session(SignInResponse.model_validate(payload), credential=credential)

    def _establish_session(
        self,
        response: SignInResponse,
        *,
        credential: ProviderCredential | None = None,
    ) -> UserCredential:
        if not response.local_id or not response.id_token:
            raise IdentityProviderError("internal-error", "Sign-in response missing user id or token.")
        user = ProviderUser(
            uid=response.local_id,
            email=response.email,
            display_name=response.display_name,
            photo_url=response.photo_url,
            phone_number=response.phone_number,
        )
        self._session = _Session(user=user, id_token=response.id_token, refresh_token=response.refresh_token)
        logger.info("identity_toolkit_client: signed_in uid=%s", user.uid)
        self._auth_state.add(user)
        return UserCredential(user=user, credential=credential)

    def _schedule_retrieval_timeout(self, session_info: str, callbacks: PhoneVerificationCallbacks) -> None:
        if self._settings.auto_retrieval_timeout_seconds <= 0:
            return
        task = asyncio.create_task(self._fire_retrieval_timeout(session_info, callbacks))
        self._timeout_tasks.add(task)
        task.add_done_callback(self._timeout_tasks.discard)

    async def _fire_retrieval_timeout(self, session_info: str, callbacks: PhoneVerificationCallbacks) -> None:
        await asyncio.sleep(self._settings.auto_retrieval_timeout_seconds)
        await callbacks.on_timeout(session_info)

    def _cancel_timeouts(self) -> None:
        for task in list(self._timeout_tasks):
            task.cancel()
        self._timeout_tasks.clear()

    async def _post(self, endpoint: str, body: dict) -> dict:
        url = f"{self._settings.base_url.rstrip('/')}/{endpoint}"
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(url, params={"key": self._settings.api_key}, json=body)
        except httpx.HTTPError as exc:
            logger.warning(
                "identity_toolkit_client: request_failed endpoint=%s error=%s",
                endpoint,
                type(exc).__name__,
            )
            raise IdentityProviderError("network-request-failed") from exc

        if response.status_code != 200:
            raise self._error_from_response(endpoint, response)
        logger.debug("identity_toolkit_client: request endpoint=%s status=%s", endpoint, response.status_code)
        return response.json()

    def _error_from_response(self, endpoint: str, response: httpx.Response) -> IdentityProviderError:
        try:
            error = ToolkitErrorResponse.model_validate(response.json()).error
        except ValueError:
            logger.warning(
                "identity_toolkit_client: invalid_error_body endpoint=%s status=%s",
                endpoint,
                response.status_code,
            )
            return IdentityProviderError("internal-error")

        code = provider_code_from_message(error.message)
        logger.info(
            "identity_toolkit_client: provider_error endpoint=%s status=%s code=%s",
            endpoint,
            response.status_code,
            code,
        )
        return IdentityProviderError(code, error.message)
