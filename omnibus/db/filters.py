"""Structured filters and their compilation to parameterized WHERE clauses.

A filter is a dataclass of optional fields.  Each present field ANDs one
predicate; absent fields (``None`` or an empty list) add nothing, so an empty
filter selects every row.  Filters can be built from plain dicts coming from
the HTTP API or from a saved export profile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Mapping, Optional, Sequence

from omnibus.errors import ValidationError

logger = logging.getLogger(__name__)


def like_pattern(term: str) -> str:
    """Case-insensitive substring pattern, LIKE wildcards escaped."""
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class Filter:
    """Base class; subclasses declare fields plus the class-level maps below."""

    # attribute -> column, value is a membership list (``col IN (...)``)
    MEMBERSHIP: ClassVar[dict[str, str]] = {}
    # attribute -> column, value is a single scalar (``col = ?``)
    EQUALS: ClassVar[dict[str, str]] = {}
    # attribute -> column, value is an inclusive upper bound (``col <= ?``)
    UPPER_BOUND: ClassVar[dict[str, str]] = {}
    # columns matched by the free-text ``search`` field
    SEARCH_COLUMNS: ClassVar[tuple[str, ...]] = ()
    # alternative dict keys (camelCase from the browser) -> attribute
    ALIASES: ClassVar[dict[str, str]] = {}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Filter":
        """Build a filter from a plain mapping; unknown keys are ignored."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValidationError(f"Filter must be an object, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = cls.ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
            else:
                logger.debug(f"Ignoring unknown filter key {key!r} for {cls.__name__}")
        flt = cls(**kwargs)
        flt.validate()
        return flt

    # -- validation ------------------------------------------------------------

    def _membership_values(self, attr: str) -> list[Any]:
        value = getattr(self, attr)
        if value is None:
            return []
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            return [value]
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ValidationError(f"Filter field '{attr}' must be a list")
        for item in value:
            if not isinstance(item, (str, int, float)) or isinstance(item, bool):
                raise ValidationError(f"Filter field '{attr}' contains an invalid value: {item!r}")
        return list(value)

    def validate(self) -> None:
        for attr in self.MEMBERSHIP:
            self._membership_values(attr)
        for attr in self.EQUALS:
            value = getattr(self, attr)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (str, int))):
                raise ValidationError(f"Filter field '{attr}' must be a scalar")
        for attr in self.UPPER_BOUND:
            value = getattr(self, attr)
            if value is not None and not _is_number(value):
                raise ValidationError(f"Filter field '{attr}' must be a number")
        active = getattr(self, "active", None)
        if active is not None and active not in (True, False, 0, 1):
            raise ValidationError("Filter field 'active' must be a boolean")
        search = getattr(self, "search", None)
        if search is not None and not isinstance(search, str):
            raise ValidationError("Filter field 'search' must be a string")

    # -- compilation -----------------------------------------------------------

    def _extra_clauses(self) -> tuple[list[str], list[Any]]:
        return [], []

    def compile(self) -> tuple[str, tuple[Any, ...]]:
        """Return ``(" WHERE ...", params)``; the clause is empty when nothing applies."""
        self.validate()
        clauses: list[str] = []
        params: list[Any] = []

        for attr, column in self.MEMBERSHIP.items():
            values = self._membership_values(attr)
            if values:
                clauses.append(f"{column} IN ({', '.join('?' for _ in values)})")
                params.extend(values)

        for attr, column in self.EQUALS.items():
            value = getattr(self, attr)
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)

        for attr, column in self.UPPER_BOUND.items():
            value = getattr(self, attr)
            if value is not None:
                clauses.append(f"{column} <= ?")
                params.append(value)

        active = getattr(self, "active", None)
        if active is not None:
            clauses.append("active = ?")
            params.append(1 if active else 0)

        search = getattr(self, "search", None)
        if search and self.SEARCH_COLUMNS:
            pattern = like_pattern(search)
            ors = [f"LOWER({col}) LIKE ? ESCAPE '\\'" for col in self.SEARCH_COLUMNS]
            clauses.append(f"({' OR '.join(ors)})")
            params.extend(pattern for _ in self.SEARCH_COLUMNS)

        extra_clauses, extra_params = self._extra_clauses()
        clauses.extend(extra_clauses)
        params.extend(extra_params)

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, tuple(params)


@dataclass
class FrequencyFilter(Filter):
    MEMBERSHIP: ClassVar[dict[str, str]] = {
        "mode": "mode",
        "service_type": "service_type",
        "county": "county",
        "state": "state",
    }
    UPPER_BOUND: ClassVar[dict[str, str]] = {"distance_from_kc": "distance_from_kc"}
    SEARCH_COLUMNS: ClassVar[tuple[str, ...]] = ("name", "description", "alpha_tag")
    ALIASES: ClassVar[dict[str, str]] = {
        "serviceType": "service_type",
        "distanceFromKc": "distance_from_kc",
        "frequencyRange": "frequency_range",
        "tagContains": "tag_contains",
    }

    mode: Optional[Sequence[str]] = None
    service_type: Optional[Sequence[str]] = None
    county: Optional[Sequence[str]] = None
    state: Optional[Sequence[str]] = None
    active: Optional[bool] = None
    search: Optional[str] = None
    distance_from_kc: Optional[float] = None
    frequency_range: Optional[Sequence[float]] = None
    tag_contains: Optional[str] = None

    def validate(self) -> None:
        super().validate()
        if self.frequency_range is not None:
            rng = self.frequency_range
            if (
                not isinstance(rng, (list, tuple))
                or len(rng) != 2
                or not all(_is_number(v) for v in rng)
            ):
                raise ValidationError("frequency_range must be a [low, high] pair of numbers")
            if rng[0] > rng[1]:
                raise ValidationError(f"frequency_range is inverted: {rng[0]} > {rng[1]}")
        if self.tag_contains is not None and not isinstance(self.tag_contains, str):
            raise ValidationError("Filter field 'tag_contains' must be a string")

    def _extra_clauses(self) -> tuple[list[str], list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if self.frequency_range is not None:
            clauses.append("frequency BETWEEN ? AND ?")
            params.extend([self.frequency_range[0], self.frequency_range[1]])
        if self.tag_contains:
            clauses.append("LOWER(tags) LIKE ? ESCAPE '\\'")
            params.append(like_pattern(self.tag_contains))
        return clauses, params


@dataclass
class TrunkedSystemFilter(Filter):
    MEMBERSHIP: ClassVar[dict[str, str]] = {
        "type": "type",
        "system_class": "system_class",
        "protocol": "system_protocol",
    }
    SEARCH_COLUMNS: ClassVar[tuple[str, ...]] = ("name", "description")
    ALIASES: ClassVar[dict[str, str]] = {
        "systemClass": "system_class",
        "system_protocol": "protocol",
    }

    type: Optional[Sequence[str]] = None
    system_class: Optional[Sequence[str]] = None
    protocol: Optional[Sequence[str]] = None
    active: Optional[bool] = None
    search: Optional[str] = None


@dataclass
class TrunkedSiteFilter(Filter):
    MEMBERSHIP: ClassVar[dict[str, str]] = {"county": "county", "state": "state"}
    EQUALS: ClassVar[dict[str, str]] = {"system_id": "system_id"}
    SEARCH_COLUMNS: ClassVar[tuple[str, ...]] = ("name", "description")
    ALIASES: ClassVar[dict[str, str]] = {"systemId": "system_id"}

    system_id: Optional[int] = None
    county: Optional[Sequence[str]] = None
    state: Optional[Sequence[str]] = None
    active: Optional[bool] = None
    search: Optional[str] = None


@dataclass
class TalkgroupFilter(Filter):
    MEMBERSHIP: ClassVar[dict[str, str]] = {"category": "category", "mode": "mode"}
    EQUALS: ClassVar[dict[str, str]] = {"system_id": "system_id"}
    SEARCH_COLUMNS: ClassVar[tuple[str, ...]] = ("alpha_tag", "description")
    ALIASES: ClassVar[dict[str, str]] = {"systemId": "system_id"}

    system_id: Optional[int] = None
    category: Optional[Sequence[str]] = None
    mode: Optional[Sequence[str]] = None
    active: Optional[bool] = None
    search: Optional[str] = None


@dataclass
class RadioFilter(Filter):
    MEMBERSHIP: ClassVar[dict[str, str]] = {"type": "type"}
    SEARCH_COLUMNS: ClassVar[tuple[str, ...]] = ("name", "notes")

    type: Optional[Sequence[str]] = None
    search: Optional[str] = None


@dataclass
class ExportProfileFilter(Filter):
    EQUALS: ClassVar[dict[str, str]] = {"radio_id": "radio_id"}
    SEARCH_COLUMNS: ClassVar[tuple[str, ...]] = ("name", "description")
    ALIASES: ClassVar[dict[str, str]] = {"radioId": "radio_id"}

    radio_id: Optional[int] = None
    search: Optional[str] = None


@dataclass
class CountyFilter(Filter):
    MEMBERSHIP: ClassVar[dict[str, str]] = {"state": "state", "region": "region"}
    UPPER_BOUND: ClassVar[dict[str, str]] = {"distance_from_kc": "distance_from_kc"}
    SEARCH_COLUMNS: ClassVar[tuple[str, ...]] = ("name",)
    ALIASES: ClassVar[dict[str, str]] = {"distanceFromKc": "distance_from_kc"}

    state: Optional[Sequence[str]] = None
    region: Optional[Sequence[str]] = None
    distance_from_kc: Optional[float] = None
    search: Optional[str] = None
