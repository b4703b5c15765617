from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging

from authentication_repository.application.dto.auth import ProviderUser
from authentication_repository.domain.entities.user import User
from authentication_repository.domain.exceptions import (
    AuthFailure,
    IdentityProviderError,
    OperationFamily,
)
from authentication_repository.domain.services.failure_taxonomy import failure_from_code


logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip()


def build_phone_number(*, country_code: str, phone_number: str) -> str:
    digits_country = country_code.strip().lstrip("+")
    digits_number = "".join(ch for ch in phone_number if ch.isdigit())
    return f"+{digits_country}{digits_number}"


def to_user(provider_user: ProviderUser | None) -> User:
    if provider_user is None:
        return User.empty
    return User(
        id=provider_user.uid,
        email=provider_user.email,
        name=provider_user.display_name,
        photo=provider_user.photo_url,
    )


@contextmanager
def provider_failures(family: OperationFamily) -> Iterator[None]:
    """Translate anything raised by a provider call into the family's failure type."""
    try:
        yield
    except AuthFailure:
        raise
    except IdentityProviderError as exc:
        logger.info("auth_common: provider_error family=%s code=%s", family, exc.code)
        raise failure_from_code(family, exc.code) from exc
    except Exception as exc:
        logger.info("auth_common: unexpected_error family=%s type=%s", family, type(exc).__name__)
        raise failure_from_code(family, None) from exc
