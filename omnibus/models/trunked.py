"""Trunked system, site and talkgroup models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional

from omnibus.models.base import RowModel


@dataclass
class TrunkedSystem(RowModel):
    """A trunked radio network; ``system_id`` is the external identifier."""

    TABLE: ClassVar[str] = "trunked_systems"
    TEXT_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "system_id", "name", "wacn", "description", "notes",
    })
    REQUIRED: ClassVar[tuple[str, ...]] = ("system_id", "name", "type")

    system_id: str
    name: str
    type: str
    id: Optional[int] = None
    system_class: Optional[str] = None
    business_type: Optional[str] = None
    business_owner: Optional[str] = None
    description: Optional[str] = None
    wacn: Optional[str] = None
    system_protocol: Optional[str] = None
    notes: Optional[str] = None
    active: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class TrunkedSite(RowModel):
    """A tower/site; ``system_id`` is the parent's surrogate key."""

    TABLE: ClassVar[str] = "trunked_sites"
    TEXT_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "site_id", "name", "nac", "description",
    })
    REQUIRED: ClassVar[tuple[str, ...]] = ("system_id", "site_id", "name")

    system_id: int
    site_id: str
    name: str
    id: Optional[int] = None
    description: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    range_miles: Optional[float] = None
    nac: Optional[str] = None
    active: int = 1
    distance_from_kc: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Talkgroup(RowModel):
    """A logical channel inside a trunked system."""

    TABLE: ClassVar[str] = "talkgroups"
    TEXT_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "hex_id", "alpha_tag", "description", "tag", "notes",
    })
    REQUIRED: ClassVar[tuple[str, ...]] = ("system_id", "decimal_id", "alpha_tag")

    system_id: int
    decimal_id: int
    alpha_tag: str
    id: Optional[int] = None
    hex_id: Optional[str] = None
    description: Optional[str] = None
    mode: Optional[str] = None
    category: Optional[str] = None
    tag: Optional[str] = None
    priority: int = 0
    active: int = 1
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class CompleteSystem:
    """A system together with its sites and talkgroups."""
    system: TrunkedSystem
    sites: list[TrunkedSite] = field(default_factory=list)
    talkgroups: list[Talkgroup] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "system": self.system.to_dict(),
            "sites": [s.to_dict() for s in self.sites],
            "talkgroups": [t.to_dict() for t in self.talkgroups],
        }
