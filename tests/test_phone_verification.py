from __future__ import annotations

import pytest

from authentication_repository.application.dto.auth import ProviderCredential
from authentication_repository.domain.entities.phone_auth import PhoneAuthCred
from authentication_repository.domain.exceptions import IdentityProviderError, LogInWithPhoneNumberFailure


async def test_code_sent_emits_one_event_and_verify_otp_signs_in(repository, identity_provider):
    flow = await repository.log_in_with_phone_number(country_code="1", phone_number="555-0100")

    assert identity_provider.phone_requests == [{"phone_number": "+15550100", "resend_token": None}]
    assert flow.state == "sending"

    await identity_provider.callbacks.on_code_sent("verification-1", 42)

    assert flow.state == "code_sent"
    assert flow.latest == PhoneAuthCred(verification_id="verification-1", code_sent=True, resend_token=42)
    assert flow.latest.phase == "code_sent"

    assert await repository.verify_otp(sms_code="123456") is True

    credential = identity_provider.credentials[-1]
    assert credential == ProviderCredential.phone(verification_id="verification-1", sms_code="123456")
    assert flow.state == "verified"
    assert flow.is_closed
    assert [event async for event in flow.events()] == [flow.latest]


async def test_verify_otp_without_emitted_event_fails_with_code_not_sent(repository, identity_provider):
    with pytest.raises(LogInWithPhoneNumberFailure) as exc_info:
        await repository.verify_otp(sms_code="123456")
    assert exc_info.value == LogInWithPhoneNumberFailure("OTP not sent yet", "code-not-sent")

    await repository.log_in_with_phone_number(country_code="44", phone_number="7700900123")
    with pytest.raises(LogInWithPhoneNumberFailure) as exc_info:
        await repository.verify_otp(sms_code="123456")
    assert exc_info.value.code == "code-not-sent"
    assert identity_provider.credentials == []


async def test_new_phone_login_carries_resend_token_and_cancels_previous_flow(repository, identity_provider):
    first = await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")
    first_callbacks = identity_provider.callbacks
    await first_callbacks.on_code_sent("verification-1", 42)
    await first_callbacks.on_timeout("verification-1")

    second = await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")

    assert identity_provider.phone_requests[-1] == {"phone_number": "+15550100", "resend_token": 42}
    assert second.requested_resend_token == 42
    assert first.state == "cancelled"
    assert first.is_closed
    assert repository.phone_auth_flow is second

    await first_callbacks.on_code_sent("stale-verification", 7)
    assert second.latest is None


async def test_verification_failed_closes_flow_with_mapped_failure(repository, identity_provider):
    flow = await repository.log_in_with_phone_number(country_code="1", phone_number="123")
    events = repository.phone_auth_credential

    await identity_provider.callbacks.on_failed(IdentityProviderError("invalid-phone-number"))

    assert flow.state == "failed"
    assert flow.failure == LogInWithPhoneNumberFailure(
        "The provided phone number is not valid.",
        "invalid-phone-number",
    )
    with pytest.raises(LogInWithPhoneNumberFailure) as exc_info:
        await anext(events)
    assert exc_info.value.code == "invalid-phone-number"
    assert await flow.wait_closed() == "failed"


async def test_timeout_is_not_terminal_and_keeps_verification_id(repository, identity_provider):
    flow = await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")
    events = flow.events()
    await identity_provider.callbacks.on_code_sent("verification-1", 42)
    await identity_provider.callbacks.on_timeout("verification-1")

    assert await anext(events) == PhoneAuthCred.sent(verification_id="verification-1", resend_token=42)
    timed_out = await anext(events)
    assert timed_out == PhoneAuthCred(verification_id="verification-1", timed_out=True)
    assert flow.state == "timed_out"
    assert not flow.is_closed
    assert flow.resend_token == 42

    assert await repository.verify_otp(sms_code="123456") is True
    assert identity_provider.credentials[-1].verification_id == "verification-1"


async def test_auto_verification_emits_sms_code_and_signs_in(repository, identity_provider):
    flow = await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")
    credential = ProviderCredential.phone(verification_id="verification-1", sms_code="123456")

    await identity_provider.callbacks.on_auto_verified(credential)

    assert [event async for event in flow.events()] == [PhoneAuthCred(sms_code="123456")]
    assert flow.state == "verified"
    assert identity_provider.credentials == [credential]


async def test_auto_verification_sign_in_failure_is_delivered_on_the_flow(repository, identity_provider):
    identity_provider.errors["sign_in_with_credential"] = IdentityProviderError("user-disabled")
    flow = await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")

    await identity_provider.callbacks.on_auto_verified(
        ProviderCredential.phone(verification_id="verification-1", sms_code="123456")
    )

    assert flow.state == "failed"
    assert flow.failure.code == "user-disabled"
    events = flow.events()
    assert (await anext(events)).sms_code == "123456"
    with pytest.raises(LogInWithPhoneNumberFailure):
        await anext(events)


async def test_provider_error_on_request_fails_start(repository, identity_provider):
    identity_provider.errors["verify_phone_number"] = IdentityProviderError("invalid-phone-number")

    with pytest.raises(LogInWithPhoneNumberFailure) as exc_info:
        await repository.log_in_with_phone_number(country_code="1", phone_number="abc")

    assert exc_info.value.message == "The provided phone number is not valid."
    assert repository.phone_auth_flow.state == "failed"


async def test_unexpected_error_on_request_maps_to_unknown_failure(repository, identity_provider):
    identity_provider.errors["verify_phone_number"] = RuntimeError("socket closed")

    with pytest.raises(LogInWithPhoneNumberFailure) as exc_info:
        await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")

    assert exc_info.value == LogInWithPhoneNumberFailure()
    assert isinstance(exc_info.value.__cause__, RuntimeError)


async def test_wrong_otp_maps_through_phone_family(repository, identity_provider):
    flow = await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")
    await identity_provider.callbacks.on_code_sent("verification-1", None)

    with pytest.raises(LogInWithPhoneNumberFailure) as exc_info:
        await repository.verify_otp(sms_code="000000")

    assert exc_info.value == LogInWithPhoneNumberFailure()
    assert flow.state == "code_sent"
    assert not flow.is_closed


async def test_verify_otp_after_log_out_does_not_sign_in(repository, identity_provider):
    flow = await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")
    await identity_provider.callbacks.on_code_sent("verification-1", 42)

    await repository.log_out()

    with pytest.raises(LogInWithPhoneNumberFailure) as exc_info:
        await repository.verify_otp(sms_code="123456")
    assert exc_info.value.code == "code-not-sent"
    assert identity_provider.credentials == []
    assert flow.state == "cancelled"


async def test_verify_otp_after_failed_flow_does_not_sign_in(repository, identity_provider):
    await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")
    await identity_provider.callbacks.on_code_sent("verification-1", 42)
    await identity_provider.callbacks.on_failed(IdentityProviderError("quota-exceeded"))

    with pytest.raises(LogInWithPhoneNumberFailure) as exc_info:
        await repository.verify_otp(sms_code="123456")
    assert exc_info.value.code == "code-not-sent"
    assert identity_provider.credentials == []


async def test_verify_otp_uses_only_the_newest_flow(repository, identity_provider):
    await repository.log_in_with_phone_number(country_code="1", phone_number="5550100")
    await identity_provider.callbacks.on_code_sent("verification-1", 42)

    second = await repository.log_in_with_phone_number(country_code="1", phone_number="5550199")

    with pytest.raises(LogInWithPhoneNumberFailure) as exc_info:
        await repository.verify_otp(sms_code="123456")
    assert exc_info.value.code == "code-not-sent"
    assert identity_provider.credentials == []

    await identity_provider.callbacks.on_code_sent("verification-2", None)
    assert await repository.verify_otp(sms_code="123456") is True
    assert identity_provider.credentials[-1].verification_id == "verification-2"
    assert second.state == "verified"
