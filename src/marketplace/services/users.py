"""User registration and profile management."""

from __future__ import annotations

from typing import Any

import structlog

from marketplace.domain.errors import AuthenticationError, ConflictError, ValidationFailedError
from marketplace.domain.models import Profile
from marketplace.domain.types import UserRole
from marketplace.services.auth import issue_token, verify_token
from marketplace.services.common import new_id, now_timestamp
from marketplace.store import Repositories

logger = structlog.get_logger()

EDITABLE_PROFILE_FIELDS = frozenset(
    {
        "display_name",
        "company_name",
        "instagram_handle",
        "tiktok_handle",
        "youtube_handle",
        "follower_count",
    }
)


class UserService:
    """Registers users, issues their tokens, and resolves tokens back to profiles."""

    def __init__(self, repos: Repositories, auth_secret: str) -> None:
        self._repos = repos
        self._auth_secret = auth_secret

    def register(self, data: dict[str, Any], *, allow_admin: bool = False) -> tuple[Profile, str]:
        """Create a profile and return it with its bearer token.

        Args:
            data: Profile fields; ``email``, ``role`` and ``display_name`` are required.
            allow_admin: Permit the admin role (used by the admin CLI only).

        Raises:
            ValidationFailedError: On self-registration as admin.
            ConflictError: If the email is already registered.
        """
        role = UserRole(data["role"])
        if role == UserRole.ADMIN and not allow_admin:
            raise ValidationFailedError("Cannot self-register as admin")

        email = data["email"].strip().lower()
        with self._repos.db.transaction():
            if self._repos.profiles.get_by_email(email) is not None:
                raise ConflictError("Email already registered")
            now = now_timestamp()
            profile = self._repos.profiles.insert(
                {
                    **{k: v for k, v in data.items() if k in EDITABLE_PROFILE_FIELDS},
                    "id": new_id(),
                    "email": email,
                    "role": role,
                    "created_at": now,
                    "updated_at": now,
                }
            )
        logger.info("user_registered", user_id=profile.id, role=str(role))
        return profile, issue_token(profile.id, self._auth_secret)

    def authenticate(self, token: str) -> Profile:
        """Resolve a bearer token to its profile.

        Raises:
            AuthenticationError: If the token is invalid or the user no longer exists.
        """
        user_id = verify_token(token, self._auth_secret)
        profile = self._repos.profiles.get(user_id)
        if profile is None:
            raise AuthenticationError("Unauthorized")
        return profile

    def update_profile(self, actor: Profile, data: dict[str, Any]) -> Profile:
        """Apply editable profile fields; the role and email never change here."""
        changes = {k: v for k, v in data.items() if k in EDITABLE_PROFILE_FIELDS}
        if not changes:
            raise ValidationFailedError("No valid fields to update")
        with self._repos.db.transaction():
            updated = self._repos.profiles.update_required(actor.id, changes)
        return updated
