from __future__ import annotations

from functools import lru_cache

from authentication_repository.application.authentication_repository import AuthenticationRepository
from authentication_repository.infrastructure.cache.memory_cache import InMemoryCache
from authentication_repository.infrastructure.clients.google_sign_in_client import (
    GoogleSignInClient,
    TokenSource,
)
from authentication_repository.infrastructure.clients.identity_toolkit_client import (
    IdentityToolkitClient,
    IdentityToolkitClientSettings,
)
from authentication_repository.shared.config import ConfigurationError, get_settings


@lru_cache(maxsize=1)
def get_identity_provider() -> IdentityToolkitClient:
    settings = get_settings()
    if not settings.firebase_api_key:
        raise ConfigurationError("FIREBASE_API_KEY is required.")
    return IdentityToolkitClient(
        IdentityToolkitClientSettings(
            api_key=settings.firebase_api_key,
            base_url=settings.identity_toolkit_base,
            timeout_seconds=settings.identity_timeout_seconds,
            auto_retrieval_timeout_seconds=settings.phone_auto_retrieval_timeout_seconds,
            recaptcha_token=settings.phone_recaptcha_token,
        )
    )


@lru_cache(maxsize=1)
def get_user_cache() -> InMemoryCache:
    return InMemoryCache()


def build_google_sign_in_client(token_source: TokenSource) -> GoogleSignInClient:
    settings = get_settings()
    if not settings.google_client_id:
        raise ConfigurationError("GOOGLE_CLIENT_ID is required.")
    return GoogleSignInClient(client_id=settings.google_client_id, token_source=token_source)


def build_authentication_repository(*, google_token_source: TokenSource) -> AuthenticationRepository:
    settings = get_settings()
    return AuthenticationRepository(
        identity_provider=get_identity_provider(),
        federated_sign_in=build_google_sign_in_client(google_token_source),
        cache=get_user_cache(),
        use_popup_flow=settings.use_popup_flow,
    )
