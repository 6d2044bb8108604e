"""Tests for Settings defaults, env overrides, the credential gate and get_settings cache."""

from __future__ import annotations

from pathlib import Path

import pytest

from marketplace.config import Settings, get_settings, validate_credentials


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Clear get_settings lru_cache before each test."""
    get_settings.cache_clear()


class TestSettingsDefaults:
    def test_settings_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is False
        assert s.port == 8000
        assert s.currency == "NGN"
        assert s.database_path == Path("data/marketplace.db")
        assert s.escrow_hold_days == 7
        assert s.submission_review_days == 7
        assert s.default_platform_fee_percentage == 10
        assert s.paystack_base_url == "https://api.paystack.co"

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRODUCTION", "true")
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("PAYSTACK_SECRET_KEY", "sk_live_x")
        monkeypatch.setenv("ESCROW_HOLD_DAYS", "14")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is True
        assert s.port == 9090
        assert s.escrow_hold_days == 14
        assert s.paystack_secret_key.get_secret_value() == "sk_live_x"

    def test_secrets_are_not_rendered(self) -> None:
        s = Settings(_env_file=None, auth_secret="hunter2")  # type: ignore[call-arg]
        assert "hunter2" not in repr(s)


class TestValidateCredentials:
    def test_production_missing_exits(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            production=True,
            auth_secret="",  # type: ignore[arg-type]
            paystack_secret_key="",  # type: ignore[arg-type]
        )

        with pytest.raises(SystemExit) as exc_info:
            validate_credentials(settings)

        assert exc_info.value.code == 1

    def test_production_valid(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            production=True,
            auth_secret="secret",  # type: ignore[arg-type]
            paystack_secret_key="sk_live_x",  # type: ignore[arg-type]
        )

        validate_credentials(settings)

    def test_dev_mode_only_warns(self) -> None:
        settings = Settings(_env_file=None, production=False)  # type: ignore[call-arg]

        validate_credentials(settings)


class TestGetSettingsCached:
    def test_get_settings_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PRODUCTION", raising=False)

        assert get_settings() is get_settings()
