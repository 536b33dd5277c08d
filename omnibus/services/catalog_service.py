"""Catalog service: entity-name dispatch over the table repositories.

The HTTP layer and scripts address tables by entity name ("frequency",
"talkgroup", ...).  This facade resolves the name to its repository so the
callers never touch SQL.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from omnibus.db.base_repo import FilterArg, Repository
from omnibus.db.county_repo import CountyRepository
from omnibus.db.database import Database
from omnibus.db.frequency_repo import FrequencyRepository
from omnibus.db.radio_repo import ExportProfileRepository, RadioRepository
from omnibus.db.trunked_repo import (
    TalkgroupRepository,
    TrunkedSiteRepository,
    TrunkedSystemRepository,
)
from omnibus.errors import NotFoundError, ValidationError
from omnibus.models.base import RowModel
from omnibus.models.frequency import ExportFlag
from omnibus.models.trunked import CompleteSystem

logger = logging.getLogger(__name__)

REPOSITORIES: dict[str, type[Repository[Any]]] = {
    "frequency": FrequencyRepository,
    "trunked_system": TrunkedSystemRepository,
    "trunked_site": TrunkedSiteRepository,
    "talkgroup": TalkgroupRepository,
    "radio": RadioRepository,
    "export_profile": ExportProfileRepository,
    "county": CountyRepository,
}

# Table names and URL-friendly plurals resolve to the same entity.
ENTITY_ALIASES: dict[str, str] = {
    "frequencies": "frequency",
    "trunked_systems": "trunked_system",
    "trunked-systems": "trunked_system",
    "trunked_sites": "trunked_site",
    "trunked-sites": "trunked_site",
    "sites": "trunked_site",
    "talkgroups": "talkgroup",
    "radios": "radio",
    "export_profiles": "export_profile",
    "export-profiles": "export_profile",
    "profiles": "export_profile",
    "counties": "county",
}


def resolve_entity(name: str) -> str:
    key = name.strip().lower()
    key = ENTITY_ALIASES.get(key, key)
    if key not in REPOSITORIES:
        raise ValidationError(f"Unknown entity: {name}")
    return key


class CatalogService:
    """Facade for CRUD, filtering and flag toggling across all catalog tables."""

    def __init__(self, db: Database):
        self._db = db
        self._repos: dict[str, Repository[Any]] = {
            name: cls(db) for name, cls in REPOSITORIES.items()
        }

    def repo(self, entity: str) -> Repository[Any]:
        return self._repos[resolve_entity(entity)]

    @property
    def frequencies(self) -> FrequencyRepository:
        return self._repos["frequency"]  # type: ignore[return-value]

    @property
    def systems(self) -> TrunkedSystemRepository:
        return self._repos["trunked_system"]  # type: ignore[return-value]

    # -- Create ----------------------------------------------------------------

    def create(self, entity: str, fields: Mapping[str, Any]) -> int:
        record_id = self.repo(entity).create(fields)
        logger.info(f"Created {resolve_entity(entity)} {record_id}")
        return record_id

    # -- Read ------------------------------------------------------------------

    def get(self, entity: str, record_id: int) -> Optional[RowModel]:
        return self.repo(entity).get_by_id(record_id)

    def require(self, entity: str, record_id: int) -> RowModel:
        record = self.get(entity, record_id)
        if record is None:
            raise NotFoundError(f"{resolve_entity(entity)} {record_id} not found")
        return record

    def list(
        self,
        entity: str,
        flt: FilterArg = None,
        sort_order: Optional[str] = None,
    ) -> list[RowModel]:
        return self.repo(entity).list_all(flt, sort_order)

    def count(self, entity: str, flt: FilterArg = None) -> int:
        return self.repo(entity).count(flt)

    def get_complete_system(self, system_id: int) -> Optional[CompleteSystem]:
        return self.systems.get_complete_system(system_id)

    def dashboard_counts(self) -> dict[str, int]:
        """Row totals per entity, plus active frequencies."""
        counts = {name: repo.count() for name, repo in self._repos.items()}
        counts["active_frequency"] = self.frequencies.count({"active": True})
        return counts

    # -- Update ----------------------------------------------------------------

    def update(self, entity: str, record_id: int, fields: Mapping[str, Any]) -> bool:
        return self.repo(entity).update(record_id, **dict(fields))

    def toggle_flag(self, frequency_id: int, flag: str | ExportFlag) -> bool:
        return self.frequencies.toggle_flag(frequency_id, flag)

    # -- Delete ----------------------------------------------------------------

    def delete(self, entity: str, record_id: int) -> bool:
        deleted = self.repo(entity).delete(record_id)
        if deleted:
            logger.info(f"Deleted {resolve_entity(entity)} {record_id}")
        return deleted
