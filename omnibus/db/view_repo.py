"""Read access to the export views."""

from __future__ import annotations

from typing import Any

from omnibus.db.coerce import coerce_row
from omnibus.db.database import Database
from omnibus.db.schema import VIEW_NAMES
from omnibus.errors import ValidationError
from omnibus.models.frequency import Frequency
from omnibus.models.trunked import TrunkedSystem

_KEEP_TEXT = Frequency.TEXT_FIELDS | TrunkedSystem.TEXT_FIELDS | {"comment"}

# Deterministic row order per view.
_VIEW_ORDER = {
    "business_trunked": "name, id",
}


class ViewRepository:
    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def names() -> list[str]:
        return list(VIEW_NAMES)

    def rows(self, view: str) -> list[dict[str, Any]]:
        """All rows of a logical view (e.g. ``"chirp_export"``) as coerced dicts."""
        try:
            sql_name = VIEW_NAMES[view]
        except KeyError:
            raise ValidationError(
                f"Unknown view: {view} (expected one of: {', '.join(self.names())})"
            ) from None
        order = _VIEW_ORDER.get(view, "frequency, id")
        rows = self._db.fetchall(f"SELECT * FROM {sql_name} ORDER BY {order}")
        return [coerce_row(r, _KEEP_TEXT) for r in rows]
