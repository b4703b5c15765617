from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


class ConfigurationError(RuntimeError):
    pass


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: str = "false") -> bool:
    return (_env(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    firebase_api_key: str
    identity_toolkit_base: str
    identity_timeout_seconds: float
    google_client_id: str
    use_popup_flow: bool
    phone_auto_retrieval_timeout_seconds: float
    phone_recaptcha_token: str


def get_settings() -> Settings:
    return Settings(
        firebase_api_key=_env("FIREBASE_API_KEY", ""),
        identity_toolkit_base=_env("IDENTITY_TOOLKIT_BASE", "https://identitytoolkit.googleapis.com/v1"),
        identity_timeout_seconds=float(_env("IDENTITY_TIMEOUT_SECONDS", "10")),
        google_client_id=_env("GOOGLE_CLIENT_ID", ""),
        use_popup_flow=_bool("AUTH_USE_POPUP_FLOW"),
        phone_auto_retrieval_timeout_seconds=float(_env("PHONE_AUTO_RETRIEVAL_TIMEOUT_SECONDS", "30")),
        phone_recaptcha_token=_env("PHONE_RECAPTCHA_TOKEN", ""),
    )
