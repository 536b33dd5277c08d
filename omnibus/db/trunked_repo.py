"""Repositories for trunked systems, their sites and talkgroups."""

from __future__ import annotations

import logging
from typing import Any, Optional

from omnibus.db.base_repo import Repository
from omnibus.db.filters import TalkgroupFilter, TrunkedSiteFilter, TrunkedSystemFilter
from omnibus.errors import ValidationError
from omnibus.models.trunked import CompleteSystem, Talkgroup, TrunkedSite, TrunkedSystem

logger = logging.getLogger(__name__)


class TrunkedSystemRepository(Repository[TrunkedSystem]):
    MODEL = TrunkedSystem
    FILTER = TrunkedSystemFilter

    def _check_values(self, fields: dict[str, Any]) -> None:
        # external identifiers are always stored as text
        if fields.get("system_id") is not None:
            fields["system_id"] = str(fields["system_id"]).strip()

    def find_by_system_id(self, system_id: str) -> Optional[TrunkedSystem]:
        """Look a system up by its external identifier (first match by id)."""
        row = self._db.fetchone(
            "SELECT * FROM trunked_systems WHERE system_id = ? ORDER BY id LIMIT 1",
            (str(system_id).strip(),),
        )
        return self._to_model(row) if row else None

    def get_complete_system(self, record_id: int) -> Optional[CompleteSystem]:
        system = self.get_by_id(record_id)
        if system is None:
            return None
        return CompleteSystem(
            system=system,
            sites=TrunkedSiteRepository(self._db).list_all({"system_id": record_id}),
            talkgroups=TalkgroupRepository(self._db).list_all({"system_id": record_id}),
        )

    def delete(self, record_id: int) -> bool:
        """Delete the system after its talkgroups and sites, all or nothing."""
        with self._db.transaction() as conn:
            tg = conn.execute("DELETE FROM talkgroups WHERE system_id = ?", (record_id,))
            sites = conn.execute("DELETE FROM trunked_sites WHERE system_id = ?", (record_id,))
            cur = conn.execute("DELETE FROM trunked_systems WHERE id = ?", (record_id,))
            deleted = cur.rowcount > 0
        if deleted:
            logger.info(
                f"Deleted trunked system {record_id} with {sites.rowcount} site(s) "
                f"and {tg.rowcount} talkgroup(s)"
            )
        return deleted


class TrunkedSiteRepository(Repository[TrunkedSite]):
    MODEL = TrunkedSite
    FILTER = TrunkedSiteFilter
    ORDER_BY = "system_id ASC, name ASC, id ASC"

    def _check_values(self, fields: dict[str, Any]) -> None:
        if fields.get("site_id") is not None:
            fields["site_id"] = str(fields["site_id"]).strip()


class TalkgroupRepository(Repository[Talkgroup]):
    MODEL = Talkgroup
    FILTER = TalkgroupFilter
    ORDER_BY = "decimal_id ASC, id ASC"

    def _check_values(self, fields: dict[str, Any]) -> None:
        for column in ("decimal_id", "priority"):
            value = fields.get(column)
            if value is None:
                continue
            try:
                fields[column] = int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{column} must be an integer, got {value!r}") from None
