from __future__ import annotations

from collections.abc import Mapping

from authentication_repository.domain.exceptions import (
    AuthFailure,
    LogInWithEmailAndPasswordFailure,
    LogInWithGoogleFailure,
    LogInWithPhoneNumberFailure,
    OperationFamily,
    SignUpWithEmailAndPasswordFailure,
)


_USER_DISABLED = "This user has been disabled. Please contact support for help."
_OPERATION_NOT_ALLOWED = "Operation is not allowed.  Please contact support."
_INVALID_EMAIL = "Email is not valid or badly formatted."
_USER_NOT_FOUND = "Email is not found, please create an account."
_WRONG_PASSWORD = "Incorrect password, please try again."


FAILURE_TYPES: Mapping[OperationFamily, type[AuthFailure]] = {
    "sign_up": SignUpWithEmailAndPasswordFailure,
    "log_in_email": LogInWithEmailAndPasswordFailure,
    "log_in_federated": LogInWithGoogleFailure,
    "log_in_phone": LogInWithPhoneNumberFailure,
}

FAILURE_MESSAGES: Mapping[OperationFamily, Mapping[str, str]] = {
    "sign_up": {
        "invalid-email": _INVALID_EMAIL,
        "user-disabled": _USER_DISABLED,
        "email-already-in-use": "An account already exists for that email.",
        "operation-not-allowed": _OPERATION_NOT_ALLOWED,
        "weak-password": "Please enter a stronger password.",
    },
    "log_in_email": {
        "invalid-email": _INVALID_EMAIL,
        "user-disabled": _USER_DISABLED,
        "user-not-found": _USER_NOT_FOUND,
        "wrong-password": _WRONG_PASSWORD,
    },
    "log_in_federated": {
        "account-exists-with-different-credential": "Account exists with different credentials.",
        "invalid-credential": "The credential received is malformed or has expired.",
        "operation-not-allowed": _OPERATION_NOT_ALLOWED,
        "user-disabled": _USER_DISABLED,
        "user-not-found": _USER_NOT_FOUND,
        "wrong-password": _WRONG_PASSWORD,
        "invalid-verification-code": "The credential verification code received is invalid.",
        "invalid-verification-id": "The credential verification ID received is invalid.",
    },
    "log_in_phone": {
        "invalid-phone-number": "The provided phone number is not valid.",
        "user-disabled": _USER_DISABLED,
        "code-not-sent": "OTP not sent yet",
    },
}


def failure_from_code(family: OperationFamily, code: str | None) -> AuthFailure:
    failure_type = FAILURE_TYPES[family]
    message = FAILURE_MESSAGES[family].get(code or "")
    if message is None:
        return failure_type()
    return failure_type(message, code)
