"""Platform setting rows keyed by ``setting_key``."""

from __future__ import annotations

from typing import ClassVar

from marketplace.domain.models import PlatformSetting
from marketplace.store.base import Repository


class PlatformSettingRepository(Repository[PlatformSetting]):
    table: ClassVar[str] = "platform_settings"
    model = PlatformSetting
    key_column: ClassVar[str] = "setting_key"
    order_by: ClassVar[str] = "setting_key"

    def get_value(self, key: str) -> str | None:
        setting = self.get(key)
        return setting.setting_value if setting else None
