from __future__ import annotations

from collections.abc import AsyncIterator
import asyncio
import logging

from authentication_repository.application.dto.auth import (
    PhoneLoginInput,
    PhoneVerificationCallbacks,
    ProviderCredential,
    VerifyOtpInput,
)
from authentication_repository.application.ports.identity_provider_port import IdentityProviderPort
from authentication_repository.application.streams import EventChannel
from authentication_repository.domain.entities.phone_auth import (
    PhoneAuthCred,
    PhoneVerificationState,
)
from authentication_repository.domain.exceptions import (
    AuthFailure,
    IdentityProviderError,
)
from authentication_repository.domain.services.failure_taxonomy import failure_from_code

from .auth_common import build_phone_number, provider_failures


logger = logging.getLogger(__name__)


class PhoneVerificationFlow:
    """One phone number verification, from the code request to a terminal state.

    Events are replayed to every subscriber of ``events()``; the flow's failure,
    if any, is raised from the iterator after the last event.
    """

    def __init__(self, *, phone_number: str, requested_resend_token: int | None):
        self.phone_number = phone_number
        self.requested_resend_token = requested_resend_token
        self.state: PhoneVerificationState = "idle"
        self.failure: AuthFailure | None = None
        self._channel: EventChannel[PhoneAuthCred] = EventChannel(replay=True)
        self._closed_event = asyncio.Event()
        self._resend_token: int | None = None
        self._verification_id = ""

    @property
    def is_closed(self) -> bool:
        return self._channel.is_closed

    @property
    def latest(self) -> PhoneAuthCred | None:
        return self._channel.latest

    @property
    def resend_token(self) -> int | None:
        return self._resend_token

    @property
    def verification_id(self) -> str:
        return self._verification_id

    def events(self) -> AsyncIterator[PhoneAuthCred]:
        return self._channel.subscribe()

    async def wait_closed(self) -> PhoneVerificationState:
        await self._closed_event.wait()
        return self.state

    def emit(self, event: PhoneAuthCred, *, state: PhoneVerificationState) -> bool:
        if self.is_closed:
            return False
        if event.resend_token is not None:
            self._resend_token = event.resend_token
        if event.verification_id:
            self._verification_id = event.verification_id
        self.state = state
        self._channel.add(event)
        return True

    def close(self, state: PhoneVerificationState, failure: AuthFailure | None = None) -> bool:
        if self.is_closed:
            return False
        self.state = state
        self.failure = failure
        self._channel.close(failure)
        self._closed_event.set()
        logger.debug("phone_verification: flow_closed state=%s", state)
        return True


class PhoneVerificationCoordinator:
    def __init__(self, *, identity_provider: IdentityProviderPort):
        self._identity_provider = identity_provider
        self._flow: PhoneVerificationFlow | None = None

    @property
    def current_flow(self) -> PhoneVerificationFlow | None:
        return self._flow

    async def start(self, command: PhoneLoginInput) -> PhoneVerificationFlow:
        previous = self._flow
        resend_token = previous.resend_token if previous is not None else None
        if previous is not None and previous.close("cancelled"):
            logger.info("phone_verification: previous_flow_cancelled")

        flow = PhoneVerificationFlow(
            phone_number=build_phone_number(
                country_code=command.country_code,
                phone_number=command.phone_number,
            ),
            requested_resend_token=resend_token,
        )
        self._flow = flow
        flow.state = "sending"
        logger.info(
            "phone_verification: flow_started resend_token_carried=%s",
            resend_token is not None,
        )

        try:
            with provider_failures("log_in_phone"):
                await self._identity_provider.verify_phone_number(
                    phone_number=flow.phone_number,
                    resend_token=resend_token,
                    callbacks=self._callbacks_for(flow),
                )
        except AuthFailure as failure:
            flow.close("failed", failure)
            raise
        return flow

    async def verify_otp(self, command: VerifyOtpInput) -> bool:
        flow = self._flow
        if flow is None or flow.latest is None or flow.state in ("cancelled", "failed"):
            raise failure_from_code("log_in_phone", "code-not-sent")

        credential = ProviderCredential.phone(
            verification_id=flow.verification_id,
            sms_code=command.sms_code,
        )
        with provider_failures("log_in_phone"):
            result = await self._identity_provider.sign_in_with_credential(credential=credential)

        signed_in = result.user is not None
        if signed_in:
            flow.close("verified")
        return signed_in

    def cancel(self) -> None:
        if self._flow is not None:
            self._flow.close("cancelled")

    def _callbacks_for(self, flow: PhoneVerificationFlow) -> PhoneVerificationCallbacks:
        # Callbacks bound to a closed flow are no-ops, which detaches a superseded flow.

        async def on_auto_verified(credential: ProviderCredential) -> None:
            if not flow.emit(
                PhoneAuthCred.auto_verified(sms_code=credential.sms_code or ""),
                state="auto_verified",
            ):
                return
            try:
                with provider_failures("log_in_phone"):
                    await self._identity_provider.sign_in_with_credential(credential=credential)
            except AuthFailure as failure:
                flow.close("failed", failure)
                return
            flow.close("verified")

        async def on_failed(error: IdentityProviderError) -> None:
            flow.close("failed", failure_from_code("log_in_phone", error.code))

        async def on_code_sent(verification_id: str, resend_token: int | None) -> None:
            flow.emit(
                PhoneAuthCred.sent(verification_id=verification_id, resend_token=resend_token),
                state="code_sent",
            )

        async def on_timeout(verification_id: str) -> None:
            flow.emit(
                PhoneAuthCred.retrieval_timed_out(verification_id=verification_id),
                state="timed_out",
            )

        return PhoneVerificationCallbacks(
            on_auto_verified=on_auto_verified,
            on_failed=on_failed,
            on_code_sent=on_code_sent,
            on_timeout=on_timeout,
        )