"""Tests for registration, bearer tokens and profile edits."""

from __future__ import annotations

from typing import Any

import pytest

from marketplace.domain.errors import (
    AuthenticationError,
    ConflictError,
    ValidationFailedError,
)
from marketplace.domain.models import Profile
from marketplace.domain.types import UserRole
from marketplace.services.auth import issue_token, verify_token


class TestTokens:
    def test_round_trip(self) -> None:
        token = issue_token("user-1", "secret")
        assert verify_token(token, "secret") == "user-1"

    def test_wrong_secret_rejected(self) -> None:
        token = issue_token("user-1", "secret")
        with pytest.raises(AuthenticationError):
            verify_token(token, "other")

    @pytest.mark.parametrize("token", ["", "no-signature", ".abc", "user-1."])
    def test_malformed_rejected(self, token: str) -> None:
        with pytest.raises(AuthenticationError):
            verify_token(token, "secret")

    def test_tampered_user_id_rejected(self) -> None:
        _, signature = issue_token("user-1", "secret").split(".")
        with pytest.raises(AuthenticationError):
            verify_token(f"user-2.{signature}", "secret")


class TestRegister:
    def test_register_returns_working_token(self, services: dict[str, Any]) -> None:
        profile, token = services["users"].register(
            {"email": "Ada@Example.com", "role": "influencer", "display_name": "Ada"}
        )
        assert profile.email == "ada@example.com"
        assert profile.role == UserRole.INFLUENCER
        assert services["users"].authenticate(token) == profile

    def test_self_registering_as_admin_rejected(self, services: dict[str, Any]) -> None:
        with pytest.raises(ValidationFailedError, match="Cannot self-register as admin"):
            services["users"].register(
                {"email": "root@example.com", "role": "admin", "display_name": "Root"}
            )

    def test_duplicate_email_conflicts(self, services: dict[str, Any]) -> None:
        data = {"email": "dup@example.com", "role": "business", "display_name": "Dup"}
        services["users"].register(data)
        with pytest.raises(ConflictError, match="Email already registered"):
            services["users"].register({**data, "email": "DUP@example.com"})

    def test_token_for_deleted_user_rejected(self, services: dict[str, Any]) -> None:
        token = issue_token("ghost", "test-auth-secret")
        with pytest.raises(AuthenticationError):
            services["users"].authenticate(token)


class TestUpdateProfile:
    def test_updates_editable_fields(self, services: dict[str, Any], influencer: Profile) -> None:
        updated = services["users"].update_profile(
            influencer, {"instagram_handle": "@ada", "follower_count": 12000}
        )
        assert updated.instagram_handle == "@ada"
        assert updated.follower_count == 12000

    def test_role_is_immutable(self, services: dict[str, Any], influencer: Profile) -> None:
        with pytest.raises(ValidationFailedError, match="No valid fields to update"):
            services["users"].update_profile(influencer, {"role": "admin"})
