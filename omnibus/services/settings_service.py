"""Settings service: UI preferences with published defaults."""

from __future__ import annotations

import logging
from typing import Any, Optional

from omnibus.db.database import Database
from omnibus.db.settings_repo import SettingsRepository
from omnibus.models.setting import DEFAULT_SETTINGS, AppSetting, SettingType

logger = logging.getLogger(__name__)

_MISSING = object()


class SettingsService:
    def __init__(self, db: Database):
        self._repo = SettingsRepository(db)

    def get(self, key: str, default: Any = _MISSING) -> Any:
        """
        Parsed value of ``key``.  A missing key returns ``default`` when one
        is given, else the published default for known keys, else ``None``.
        """
        if default is _MISSING:
            default = DEFAULT_SETTINGS.get(key)
        setting = self._repo.get(key)
        if setting is None:
            return default
        try:
            return setting.parsed
        except ValueError as exc:
            logger.warning(f"Stored value for setting {key!r} is unreadable ({exc}); using default")
            return default

    def set(self, key: str, value: Any, type_: Optional[SettingType | str] = None) -> AppSetting:
        setting = self._repo.set(key, value, type_)  # type: ignore[arg-type]
        logger.debug(f"Setting {key!r} = {setting.value!r} ({setting.type.value})")
        return setting

    def delete(self, key: str) -> bool:
        return self._repo.delete(key)

    def all(self) -> dict[str, Any]:
        """Every stored setting layered over the defaults."""
        values = dict(DEFAULT_SETTINGS)
        for setting in self._repo.list_all():
            values[setting.key] = self.get(setting.key)
        return values
