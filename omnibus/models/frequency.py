"""Conventional frequency model and its export flags."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional

from omnibus.models.base import RowModel


class ExportFlag(str, Enum):
    """The five independent per-vendor inclusion columns."""
    CHIRP = "export_chirp"
    UNIDEN = "export_uniden"
    SDRTRUNK = "export_sdrtrunk"
    SDRPLUS = "export_sdrplus"
    OPENGD77 = "export_opengd77"

    @classmethod
    def parse(cls, value: "str | ExportFlag") -> "ExportFlag":
        """Accept ``"export_chirp"`` as well as the short ``"chirp"``."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if not text.startswith("export_"):
            text = f"export_{text}"
        return cls(text)


@dataclass
class Frequency(RowModel):
    """A conventional (non-trunked) channel."""

    TABLE: ClassVar[str] = "frequencies"
    TEXT_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "name", "description", "alpha_tag", "callsign", "county", "state",
        "class_station_code", "notes", "tags", "agency", "tone_mode", "duplex", "mode",
        "service_type",
    })
    REQUIRED: ClassVar[tuple[str, ...]] = ("frequency", "name", "mode")

    frequency: float
    name: str
    mode: str
    id: Optional[int] = None
    transmit_frequency: Optional[float] = None
    description: Optional[str] = None
    alpha_tag: Optional[str] = None
    tone_mode: Optional[str] = None
    tone_freq: Optional[str | float] = None
    county: Optional[str] = None
    state: Optional[str] = None
    agency: Optional[str] = None
    callsign: Optional[str] = None
    service_type: Optional[str] = None
    tags: Optional[str] = None
    duplex: Optional[str] = None
    offset: Optional[float] = None
    last_verified: Optional[str] = None
    notes: Optional[str] = None
    source: Optional[str] = None
    active: int = 1
    distance_from_kc: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    class_station_code: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    export_chirp: int = 0
    export_uniden: int = 0
    export_sdrtrunk: int = 0
    export_sdrplus: int = 0
    export_opengd77: int = 0
