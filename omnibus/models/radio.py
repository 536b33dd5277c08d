"""Radio profiles and saved export profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from omnibus.models.base import RowModel


@dataclass
class Radio(RowModel):
    """A target scanner / radio / SDR application and its limits."""

    TABLE: ClassVar[str] = "radios"
    TEXT_FIELDS: ClassVar[frozenset[str]] = frozenset({"name", "supported_modes", "notes"})
    REQUIRED: ClassVar[tuple[str, ...]] = (
        "name", "type", "min_frequency", "max_frequency", "supported_modes",
    )

    name: str
    type: str
    min_frequency: float
    max_frequency: float
    supported_modes: str
    id: Optional[int] = None
    channel_capacity: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def modes(self) -> list[str]:
        return [m.strip() for m in (self.supported_modes or "").split(",") if m.strip()]


@dataclass
class ExportProfile(RowModel):
    """A saved radio + filter + sort combination."""

    TABLE: ClassVar[str] = "export_profiles"
    TEXT_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "name", "description", "filter_query", "sort_order",
    })
    REQUIRED: ClassVar[tuple[str, ...]] = ("radio_id", "name", "filter_query", "sort_order")

    radio_id: int
    name: str
    filter_query: str
    sort_order: str
    id: Optional[int] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def filter_dict(self) -> dict[str, Any]:
        """Decode ``filter_query``; an empty query means "no filter"."""
        if not self.filter_query or not self.filter_query.strip():
            return {}
        data = json.loads(self.filter_query)
        if not isinstance(data, dict):
            raise ValueError("filter_query must encode a JSON object")
        return data
