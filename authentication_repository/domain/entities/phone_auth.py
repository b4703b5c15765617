from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


PhoneAuthPhase = Literal["code_sent", "auto_verified", "timed_out", "unknown"]

PhoneVerificationState = Literal[
    "idle",
    "sending",
    "code_sent",
    "auto_verified",
    "timed_out",
    "verified",
    "failed",
    "cancelled",
]


@dataclass(frozen=True)
class PhoneAuthCred:
    """One event emitted by a phone verification flow.

    The flags tell the phases apart: ``code_sent`` carries the verification id and
    resend token, an auto-verification carries only ``sms_code`` and a retrieval
    timeout carries the verification id with ``timed_out`` set.
    """

    sms_code: str = ""
    verification_id: str = ""
    code_sent: bool = False
    timed_out: bool = False
    resend_token: int | None = None

    @classmethod
    def sent(cls, *, verification_id: str, resend_token: int | None) -> PhoneAuthCred:
        return cls(verification_id=verification_id, code_sent=True, resend_token=resend_token)

    @classmethod
    def auto_verified(cls, *, sms_code: str) -> PhoneAuthCred:
        return cls(sms_code=sms_code)

    @classmethod
    def retrieval_timed_out(cls, *, verification_id: str) -> PhoneAuthCred:
        return cls(verification_id=verification_id, timed_out=True)

    @property
    def phase(self) -> PhoneAuthPhase:
        if self.code_sent:
            return "code_sent"
        if self.timed_out:
            return "timed_out"
        if self.sms_code:
            return "auto_verified"
        return "unknown"
