"""County reference data used for filtering and display."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from omnibus.models.base import RowModel


@dataclass
class County(RowModel):
    TABLE: ClassVar[str] = "counties"
    TEXT_FIELDS: ClassVar[frozenset[str]] = frozenset({"name", "fips_code", "notes"})
    REQUIRED: ClassVar[tuple[str, ...]] = ("name", "state", "region", "distance_from_kc")

    name: str
    state: str
    region: str
    distance_from_kc: float
    id: Optional[int] = None
    fips_code: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
