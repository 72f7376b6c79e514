"""Service configuration loaded from environment variables.

Everything is optional except JWT_SECRET, which falls back to an insecure
development value. Production (APP_ENV=production) refuses that fallback.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from smsgateway.domain.errors import ConfigurationError
from smsgateway.observability.logging import get_logger
from smsgateway.observability.redaction import safe_log_context

logger = get_logger(__name__)

DEV_JWT_SECRET = "devsecret"
DEFAULT_HUBSPOT_BASE_URL = "https://api.hubapi.com"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer")


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.environ.get(name, default)
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    port: int = 3001
    app_env: str = "development"
    jwt_secret: str = DEV_JWT_SECRET
    jwt_ttl_hours: int = 72
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_messaging_service_sid: str = ""
    hubspot_token: str = ""
    hubspot_base_url: str = DEFAULT_HUBSPOT_BASE_URL
    hubspot_timeout: int = 10
    tasks_backend: str = "thread"
    tasks_max_workers: int = 4
    tasks_max_pending: int = 100
    cors_allow_origins: tuple[str, ...] = ("*",)
    demo_user_email: str = "rep@example.com"
    demo_user_password: str = field(default="password", repr=False)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            port=_env_int("PORT", 3001),
            app_env=os.environ.get("APP_ENV", "development"),
            jwt_secret=os.environ.get("JWT_SECRET") or DEV_JWT_SECRET,
            jwt_ttl_hours=_env_int("JWT_TTL_HOURS", 72),
            twilio_account_sid=os.environ.get("TWILIO_ACCOUNT_SID", ""),
            twilio_auth_token=os.environ.get("TWILIO_AUTH_TOKEN", ""),
            twilio_messaging_service_sid=os.environ.get("TWILIO_MESSAGING_SERVICE_SID", ""),
            hubspot_token=os.environ.get("HUBSPOT_TOKEN", ""),
            hubspot_base_url=os.environ.get("HUBSPOT_BASE_URL", DEFAULT_HUBSPOT_BASE_URL),
            hubspot_timeout=_env_int("HUBSPOT_TIMEOUT", 10),
            tasks_backend=os.environ.get("TASKS_BACKEND", "thread"),
            tasks_max_workers=_env_int("TASKS_MAX_WORKERS", 4),
            tasks_max_pending=_env_int("TASKS_MAX_PENDING", 100),
            cors_allow_origins=_env_list("CORS_ALLOW_ORIGINS", "*"),
            demo_user_email=os.environ.get("DEMO_USER_EMAIL", "rep@example.com"),
            demo_user_password=os.environ.get("DEMO_USER_PASSWORD", "password"),
        )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def twilio_configured(self) -> bool:
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_messaging_service_sid
        )

    @property
    def hubspot_configured(self) -> bool:
        return bool(self.hubspot_token)

    def check_secret(self) -> None:
        """Flag the development signing secret.

        Raises:
            ConfigurationError: In production when JWT_SECRET is unset or
                still the development default.
        """
        if self.jwt_secret != DEV_JWT_SECRET:
            return
        if self.is_production:
            raise ConfigurationError("JWT_SECRET is required in production")
        logger.warning(
            "JWT_SECRET not set - using insecure development secret",
            extra={"extra_fields": safe_log_context(app_env=self.app_env)},
        )
