"""Typed application settings stored as text."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SettingType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"

    @classmethod
    def infer(cls, value: Any) -> "SettingType":
        if isinstance(value, bool):
            return cls.BOOLEAN
        if isinstance(value, (int, float)):
            return cls.NUMBER
        if isinstance(value, str):
            return cls.STRING
        return cls.JSON


# Recognised UI preference keys and their defaults.  Not enforced by the store.
DEFAULT_SETTINGS: dict[str, Any] = {
    "darkMode": False,
    "sidebarOpen": True,
    "activeTab": "dashboard",
    "modals": {},
}


def stringify_value(value: Any, type_: SettingType) -> str:
    if type_ is SettingType.BOOLEAN:
        return "true" if value else "false"
    if type_ is SettingType.JSON or isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def parse_value(raw: str, type_: SettingType) -> Any:
    if type_ is SettingType.NUMBER:
        try:
            return int(raw)
        except ValueError:
            return float(raw)
    if type_ is SettingType.BOOLEAN:
        return raw == "true"
    if type_ is SettingType.JSON:
        return json.loads(raw)
    return raw


@dataclass
class AppSetting:
    key: str
    value: str
    type: SettingType
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def parsed(self) -> Any:
        return parse_value(self.value, self.type)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AppSetting":
        return cls(
            key=row["key"],
            value=row["value"],
            type=SettingType(row.get("type", "string")),
            id=row.get("id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.parsed,
            "type": self.type.value,
            "updated_at": self.updated_at,
        }
