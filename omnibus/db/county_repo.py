"""Repository for the ``counties`` reference table."""

from __future__ import annotations

from typing import Any

from omnibus.db.base_repo import Repository
from omnibus.db.filters import CountyFilter
from omnibus.errors import ValidationError
from omnibus.models.county import County


class CountyRepository(Repository[County]):
    MODEL = County
    FILTER = CountyFilter
    ORDER_BY = "distance_from_kc ASC, name ASC, id ASC"

    def _check_values(self, fields: dict[str, Any]) -> None:
        value = fields.get("distance_from_kc")
        if value is not None:
            try:
                fields["distance_from_kc"] = float(value)
            except (TypeError, ValueError):
                raise ValidationError("distance_from_kc must be a number") from None
