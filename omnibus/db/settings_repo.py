"""Repository for the ``app_settings`` key/value table."""

from __future__ import annotations

from typing import Any, Optional

from omnibus.db.base_repo import utcnow
from omnibus.db.database import Database
from omnibus.errors import ValidationError
from omnibus.models.setting import AppSetting, SettingType, stringify_value


class SettingsRepository:
    """Typed key/value store; values are text, parsed by their type tag."""

    def __init__(self, db: Database):
        self._db = db

    def get(self, key: str) -> Optional[AppSetting]:
        row = self._db.fetchone("SELECT * FROM app_settings WHERE key = ?", (key,))
        return AppSetting.from_row(row) if row else None

    def set(self, key: str, value: Any, type_: Optional[SettingType] = None) -> AppSetting:
        if type_ is None:
            type_ = SettingType.infer(value)
        else:
            try:
                type_ = SettingType(type_)
            except ValueError:
                raise ValidationError(f"Unknown setting type: {type_!r}") from None
        text = stringify_value(value, type_)
        now = utcnow()
        with self._db.transaction() as conn:
            conn.execute(
                """INSERT INTO app_settings (key, value, type, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(key) DO UPDATE
                   SET value = excluded.value, type = excluded.type,
                       updated_at = excluded.updated_at""",
                (key, text, type_.value, now),
            )
        return AppSetting(key=key, value=text, type=type_, updated_at=now)

    def delete(self, key: str) -> bool:
        with self._db.transaction() as conn:
            cur = conn.execute("DELETE FROM app_settings WHERE key = ?", (key,))
            return cur.rowcount > 0

    def list_all(self) -> list[AppSetting]:
        rows = self._db.fetchall("SELECT * FROM app_settings ORDER BY key")
        return [AppSetting.from_row(r) for r in rows]
