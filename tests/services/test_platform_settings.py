"""Tests for admin-managed platform settings."""

from __future__ import annotations

from typing import Any

import pytest

from marketplace.domain.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.models import Profile


class TestPlatformSettings:
    def test_fee_setting_seeded(self, services: dict[str, Any]) -> None:
        setting = services["platform_settings"].get("platform_fee_percentage")
        assert setting.setting_value == "10"

    def test_create_and_list(self, services: dict[str, Any], admin: Profile) -> None:
        services["platform_settings"].create(admin, "min_payout", "1000", "Smallest payout")

        keys = [s.setting_key for s in services["platform_settings"].list()]
        assert keys == sorted(keys)
        assert "min_payout" in keys

    def test_duplicate_key(self, services: dict[str, Any], admin: Profile) -> None:
        with pytest.raises(ConflictError):
            services["platform_settings"].create(admin, "platform_fee_percentage", "5")

    def test_blank_key(self, services: dict[str, Any], admin: Profile) -> None:
        with pytest.raises(ValidationFailedError):
            services["platform_settings"].create(admin, "  ", "5")

    def test_update_description(self, services: dict[str, Any], admin: Profile) -> None:
        updated = services["platform_settings"].update(
            admin, "platform_fee_percentage", {"description": "Payout fee"}
        )
        assert updated.description == "Payout fee"
        assert updated.setting_value == "10"

    def test_update_needs_fields(self, services: dict[str, Any], admin: Profile) -> None:
        with pytest.raises(ValidationFailedError):
            services["platform_settings"].update(admin, "platform_fee_percentage", {})

    def test_delete_and_missing(self, services: dict[str, Any], admin: Profile) -> None:
        services["platform_settings"].create(admin, "temp", "1")
        services["platform_settings"].delete(admin, "temp")
        with pytest.raises(NotFoundError):
            services["platform_settings"].get("temp")
        with pytest.raises(NotFoundError):
            services["platform_settings"].delete(admin, "temp")

    @pytest.mark.parametrize("role_fixture", ["business", "influencer"])
    def test_admin_only(
        self, request: pytest.FixtureRequest, services: dict[str, Any], role_fixture: str
    ) -> None:
        actor = request.getfixturevalue(role_fixture)
        with pytest.raises(PermissionDeniedError):
            services["platform_settings"].create(actor, "x", "1")
        with pytest.raises(PermissionDeniedError):
            services["platform_settings"].update(
                actor, "platform_fee_percentage", {"setting_value": "1"}
            )
