"""Repositories for radios and saved export profiles."""

from __future__ import annotations

import json
from typing import Any

from omnibus.db.base_repo import Repository, order_clause
from omnibus.db.filters import ExportProfileFilter, FrequencyFilter, RadioFilter
from omnibus.errors import ValidationError
from omnibus.models.frequency import Frequency
from omnibus.models.radio import ExportProfile, Radio


class RadioRepository(Repository[Radio]):
    MODEL = Radio
    FILTER = RadioFilter

    def _check_values(self, fields: dict[str, Any]) -> None:
        for column in ("min_frequency", "max_frequency"):
            if fields.get(column) is not None:
                try:
                    fields[column] = float(fields[column])
                except (TypeError, ValueError):
                    raise ValidationError(f"{column} must be a number") from None
        modes = fields.get("supported_modes")
        if isinstance(modes, (list, tuple)):
            fields["supported_modes"] = ",".join(str(m) for m in modes)


class ExportProfileRepository(Repository[ExportProfile]):
    MODEL = ExportProfile
    FILTER = ExportProfileFilter

    def _check_values(self, fields: dict[str, Any]) -> None:
        query = fields.get("filter_query")
        if isinstance(query, dict):
            query = fields["filter_query"] = json.dumps(query, sort_keys=True)
        if query is not None:
            try:
                decoded = json.loads(query) if query.strip() else {}
            except (AttributeError, json.JSONDecodeError) as exc:
                raise ValidationError(f"filter_query is not valid JSON: {exc}") from None
            FrequencyFilter.from_dict(decoded)
        sort_order = fields.get("sort_order")
        if sort_order is not None:
            # profiles always sort frequencies
            order_clause(Frequency, sort_order, "")
