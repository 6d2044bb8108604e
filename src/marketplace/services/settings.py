"""Admin-managed platform settings such as the payout fee percentage."""

from __future__ import annotations

from typing import Any

from marketplace.domain.errors import ConflictError, NotFoundError, ValidationFailedError
from marketplace.domain.models import PlatformSetting, Profile
from marketplace.domain.types import UserRole
from marketplace.services.common import now_timestamp, require_found, require_role
from marketplace.store import Repositories


class PlatformSettingService:
    def __init__(self, repos: Repositories) -> None:
        self._repos = repos

    def list(self) -> list[PlatformSetting]:
        return self._repos.settings.find()

    def get(self, key: str) -> PlatformSetting:
        return require_found(self._repos.settings.get(key), "Setting not found")

    def create(
        self, actor: Profile, key: str, value: str, description: str | None = None
    ) -> PlatformSetting:
        require_role(actor, [UserRole.ADMIN], "Only admins can manage platform settings")
        if not key.strip():
            raise ValidationFailedError("setting_key is required")
        with self._repos.db.transaction():
            if self._repos.settings.get(key) is not None:
                raise ConflictError("Setting key already exists")
            now = now_timestamp()
            return self._repos.settings.insert(
                {
                    "setting_key": key,
                    "setting_value": value,
                    "description": description,
                    "created_at": now,
                    "updated_at": now,
                }
            )

    def update(self, actor: Profile, key: str, data: dict[str, Any]) -> PlatformSetting:
        require_role(actor, [UserRole.ADMIN], "Only admins can manage platform settings")
        changes = {
            k: v
            for k, v in data.items()
            if k in ("setting_value", "description") and v is not None
        }
        if not changes:
            raise ValidationFailedError("No valid fields to update")
        with self._repos.db.transaction():
            require_found(self._repos.settings.get(key), "Setting not found")
            return self._repos.settings.update(key, changes)

    def delete(self, actor: Profile, key: str) -> None:
        require_role(actor, [UserRole.ADMIN], "Only admins can manage platform settings")
        with self._repos.db.transaction():
            if not self._repos.settings.delete(key):
                raise NotFoundError("Setting not found")
