from __future__ import annotations

from typing import ClassVar, Literal


OperationFamily = Literal["sign_up", "log_in_email", "log_in_federated", "log_in_phone"]

UNKNOWN_FAILURE_MESSAGE = "An unknown exception occurred."


class DomainError(Exception):
    """Base for domain errors."""


class IdentityProviderError(DomainError):
    """Coded error raised by an identity provider client."""

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class GoogleTokenValidationError(DomainError):
    """Google ID token could not be validated."""


class AuthFailure(DomainError):
    """Failure of an authentication operation, carrying a display message and the provider code."""

    family: ClassVar[OperationFamily]

    def __init__(self, message: str = UNKNOWN_FAILURE_MESSAGE, code: str = ""):
        self.message = message
        self.code = code
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (self.message, self.code) == (other.message, other.code)

    def __hash__(self) -> int:
        return hash((type(self), self.message, self.code))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, code={self.code!r})"


class SignUpWithEmailAndPasswordFailure(AuthFailure):
    """Account creation failed."""

    family = "sign_up"


class LogInWithEmailAndPasswordFailure(AuthFailure):
    """Email and password sign-in failed."""

    family = "log_in_email"


class LogInWithGoogleFailure(AuthFailure):
    """Federated (Google) sign-in failed."""

    family = "log_in_federated"


class LogInWithPhoneNumberFailure(AuthFailure):
    """Phone number verification or OTP sign-in failed."""

    family = "log_in_phone"


class LogOutFailure(DomainError):
    """Signing out of the provider or the federated session failed."""
