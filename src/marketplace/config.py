"""Typed runtime configuration for the marketplace service.

Everything is read from the environment (or a local ``.env``) into one
``Settings`` object.  ``get_settings()`` caches it for the process and
``validate_credentials()`` refuses to start production without secrets.

Nothing from the ``marketplace`` package is imported here, so any module can
import settings without creating a cycle.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Marketplace settings; secrets are ``SecretStr`` so they never render in logs."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    port: int = 8000
    currency: str = "NGN"

    # -- Storage ---------------------------------------------------------------
    database_path: Path = Path("data/marketplace.db")

    # -- Auth ------------------------------------------------------------------
    auth_secret: SecretStr = SecretStr("")

    # -- Paystack --------------------------------------------------------------
    paystack_secret_key: SecretStr = SecretStr("")
    paystack_base_url: str = "https://api.paystack.co"

    # -- Escrow / payouts ------------------------------------------------------
    escrow_hold_days: int = 7
    submission_review_days: int = 7
    default_platform_fee_percentage: int = 10
    auto_release_interval_seconds: int = 3600

    # -- Slack (ops alerts) ----------------------------------------------------
    slack_bot_token: SecretStr = SecretStr("")
    slack_ops_channel: str = ""

    # -- Observability ---------------------------------------------------------
    sentry_dsn: str = ""


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process; tests reset with ``get_settings.cache_clear()``."""
    try:
        return Settings()
    except ValidationError as exc:
        # exc.errors() only; str(exc) can echo raw secret input.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


REQUIRED_SECRETS = {
    "AUTH_SECRET": "auth_secret",
    "PAYSTACK_SECRET_KEY": "paystack_secret_key",
}


def validate_credentials(settings: Settings) -> None:
    """Check that the signing and Paystack secrets are configured.

    Production exits with status 1 and a summary on stderr when one is
    missing; development only warns.
    """
    missing = [
        env_name
        for env_name, field in REQUIRED_SECRETS.items()
        if not getattr(settings, field).get_secret_value()
    ]
    if not missing:
        logger.info("credentials_present")
        return

    if not settings.production:
        for env_name in missing:
            logger.warning("credential_missing_dev", env_var=env_name)
        return

    logger.error("credentials_missing", env_vars=missing)
    print(
        "Refusing to start in production; set these variables: " + ", ".join(missing),
        file=sys.stderr,
    )
    sys.exit(1)
