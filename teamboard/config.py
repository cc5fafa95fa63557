"""Runtime configuration read from the environment.

Env vars:
  SUPABASE_URL                  — project URL (falls back to NEXT_PUBLIC_SUPABASE_URL)
  SUPABASE_SERVICE_ROLE_KEY     — service-role key used for REST + auth admin calls
  GOOGLE_SERVICE_ACCOUNT_EMAIL  — service account with Gmail domain-wide delegation
  GOOGLE_PRIVATE_KEY_B64        — base64-encoded PEM private key of that account
  MAIL_SENDER_ADDRESS           — mailbox the service account impersonates
  APP_BASE_URL                  — base for deep links in emails
  APP_ENV                       — "production" hides error details in responses
  HTTP_TIMEOUT_SECONDS          — timeout for Supabase calls (default: 10)
"""

import base64
import binascii
import os
from dataclasses import dataclass

from teamboard.errors import ConfigurationError

DEFAULT_APP_BASE_URL = "https://projects.golcentres.co.uk"
DEFAULT_SENDER_ADDRESS = "notifications@golcentres.co.uk"

DEFAULT_HTTP_TIMEOUT = 10.0

DATABASE_ENV_VARS = ("SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_URL")
MAIL_ENV_VARS = ("GOOGLE_SERVICE_ACCOUNT_EMAIL", "GOOGLE_PRIVATE_KEY_B64")


def app_env() -> str:
    return os.getenv("APP_ENV", "production").strip().lower() or "production"


def _http_timeout() -> float:
    raw = os.getenv("HTTP_TIMEOUT_SECONDS", "").strip()
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            "Server configuration error",
            details=f"HTTP_TIMEOUT_SECONDS must be a number, got {raw!r}",
        ) from exc


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_service_key: str
    google_service_account_email: str
    google_private_key_b64: str
    sender_address: str = DEFAULT_SENDER_ADDRESS
    app_base_url: str = DEFAULT_APP_BASE_URL
    app_env: str = "production"
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            supabase_url=(
                os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL", "")
            ).strip().rstrip("/"),
            supabase_service_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip(),
            google_service_account_email=os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "").strip(),
            google_private_key_b64=os.getenv("GOOGLE_PRIVATE_KEY_B64", "").strip(),
            sender_address=os.getenv("MAIL_SENDER_ADDRESS", "").strip() or DEFAULT_SENDER_ADDRESS,
            app_base_url=(os.getenv("APP_BASE_URL", "").strip() or DEFAULT_APP_BASE_URL).rstrip("/"),
            app_env=app_env(),
            http_timeout=_http_timeout(),
        )

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def missing(self, names: tuple[str, ...]) -> list[str]:
        values = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_SERVICE_ROLE_KEY": self.supabase_service_key,
            "GOOGLE_SERVICE_ACCOUNT_EMAIL": self.google_service_account_email,
            "GOOGLE_PRIVATE_KEY_B64": self.google_private_key_b64,
        }
        return [name for name in names if not values.get(name)]

    def require(self, *groups: tuple[str, ...]) -> "Settings":
        """Fail closed when any variable of the given groups is unset."""
        missing: list[str] = []
        for group in groups:
            missing.extend(n for n in self.missing(group) if n not in missing)
        if missing:
            raise ConfigurationError(
                "Server configuration error",
                details=f"Missing env vars: {', '.join(missing)}",
            )
        return self

    def google_private_key(self) -> str:
        """Decode the PEM key; literal ``\\n`` sequences are turned into newlines."""
        try:
            pem = base64.b64decode(self.google_private_key_b64, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise ConfigurationError(
                "Server configuration error",
                details="GOOGLE_PRIVATE_KEY_B64 is not valid base64",
            ) from exc
        return pem.replace("\\n", "\n")

    def project_url(self, project_id: str) -> str:
        return f"{self.app_base_url}/projects/{project_id}"
