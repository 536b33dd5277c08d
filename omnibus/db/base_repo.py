"""Generic CRUD repository shared by every catalog table."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Generic, Mapping, Optional, TypeVar, Union

from omnibus.db.coerce import coerce_row
from omnibus.db.database import Database
from omnibus.db.filters import Filter
from omnibus.errors import ValidationError
from omnibus.models.base import RowModel

M = TypeVar("M", bound=RowModel)

FilterArg = Union[Filter, Mapping[str, Any], None]

_SORT_TERM = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)(?:\s+(ASC|DESC))?\s*$", re.IGNORECASE)


def utcnow() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _to_param(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def order_clause(model: type[RowModel], sort_order: Optional[str], default: str) -> str:
    """Validate a ``"col [ASC|DESC], ..."`` sort order against the model columns."""
    if not sort_order or not sort_order.strip():
        return default
    known = set(model.columns())
    terms = []
    for part in sort_order.split(","):
        match = _SORT_TERM.match(part)
        if not match or match.group(1) not in known:
            raise ValidationError(f"Invalid sort order for {model.TABLE}: {sort_order!r}")
        direction = (match.group(2) or "ASC").upper()
        terms.append(f"{match.group(1)} {direction}")
    terms.append("id ASC")
    return ", ".join(terms)


class Repository(Generic[M]):
    """
    Table-generic repository.  Subclasses set ``MODEL`` (the row dataclass),
    ``FILTER`` (its filter type) and ``ORDER_BY`` (the natural ordering).
    """

    MODEL: ClassVar[type[RowModel]]
    FILTER: ClassVar[type[Filter]] = Filter
    ORDER_BY: ClassVar[str] = "name, id"

    def __init__(self, db: Database):
        self._db = db

    @property
    def table(self) -> str:
        return self.MODEL.TABLE

    # -- Validation ------------------------------------------------------------

    def _check_columns(self, fields: Mapping[str, Any]) -> None:
        unknown = set(fields) - self.MODEL.writable_columns()
        if unknown:
            raise ValidationError(
                f"Unknown column(s) for {self.table}: {', '.join(sorted(unknown))}"
            )

    def _check_values(self, fields: dict[str, Any]) -> None:
        """Hook for per-table value rules; may normalise ``fields`` in place."""

    def _check_types(self, fields: Mapping[str, Any]) -> None:
        for name, value in fields.items():
            if value is not None and not isinstance(value, (str, int, float, bytes)):
                raise ValidationError(
                    f"Invalid value for {self.table}.{name}: {type(value).__name__} is not storable"
                )

    def validate_create(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        data = {k: _to_param(v) for k, v in fields.items()}
        self._check_columns(data)
        missing = [name for name in self.MODEL.REQUIRED if _is_blank(data.get(name))]
        if missing:
            raise ValidationError(
                f"Missing required field(s) for {self.table}: {', '.join(missing)}"
            )
        self._check_values(data)
        self._check_types(data)
        return data

    def validate_update(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        data = {k: _to_param(v) for k, v in fields.items()}
        self._check_columns(data)
        cleared = [name for name in self.MODEL.REQUIRED if name in data and _is_blank(data[name])]
        if cleared:
            raise ValidationError(
                f"Required field(s) cannot be empty: {', '.join(cleared)}"
            )
        self._check_values(data)
        self._check_types(data)
        return data

    # -- Create ----------------------------------------------------------------

    def create(self, fields: Mapping[str, Any]) -> int:
        """Insert one row and return its generated id."""
        data = self.validate_create(fields)
        columns = list(data)
        placeholders = ", ".join("?" for _ in columns)
        with self._db.transaction() as conn:
            cur = conn.execute(
                f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders})",
                tuple(data[c] for c in columns),
            )
            return int(cur.lastrowid)

    # -- Read ------------------------------------------------------------------

    def _to_model(self, row: dict[str, Any]) -> M:
        return self.MODEL.from_row(coerce_row(row, self.MODEL.TEXT_FIELDS))  # type: ignore[return-value]

    def get_by_id(self, record_id: int) -> Optional[M]:
        row = self._db.fetchone(f"SELECT * FROM {self.table} WHERE id = ?", (record_id,))
        return self._to_model(row) if row else None

    # -- List / Filter ---------------------------------------------------------

    def build_filter(self, flt: FilterArg) -> Filter:
        if flt is None:
            return self.FILTER()
        if isinstance(flt, Filter):
            if not isinstance(flt, self.FILTER):
                raise ValidationError(
                    f"{type(flt).__name__} cannot filter {self.table}"
                )
            return flt
        return self.FILTER.from_dict(flt)

    def order_clause(self, sort_order: Optional[str]) -> str:
        return order_clause(self.MODEL, sort_order, self.ORDER_BY)

    def list_all(self, flt: FilterArg = None, sort_order: Optional[str] = None) -> list[M]:
        where, params = self.build_filter(flt).compile()
        order = self.order_clause(sort_order)
        rows = self._db.fetchall(f"SELECT * FROM {self.table}{where} ORDER BY {order}", params)
        return [self._to_model(r) for r in rows]

    def count(self, flt: FilterArg = None) -> int:
        where, params = self.build_filter(flt).compile()
        row = self._db.fetchone(f"SELECT COUNT(*) AS n FROM {self.table}{where}", params)
        return int(row["n"]) if row else 0

    # -- Update ----------------------------------------------------------------

    def update(self, record_id: int, **fields: Any) -> bool:
        """
        Patch the supplied columns only and stamp ``updated_at``.  An empty
        patch runs no statement at all and returns False.
        """
        if not fields:
            return False

        data = self.validate_update(fields)
        set_parts = [f"{k} = ?" for k in data]
        set_parts.append("updated_at = ?")
        values = list(data.values())
        values.append(utcnow())
        values.append(record_id)

        with self._db.transaction() as conn:
            cur = conn.execute(
                f"UPDATE {self.table} SET {', '.join(set_parts)} WHERE id = ?",
                tuple(values),
            )
            return cur.rowcount > 0

    # -- Delete ----------------------------------------------------------------

    def delete(self, record_id: int) -> bool:
        with self._db.transaction() as conn:
            cur = conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (record_id,))
            return cur.rowcount > 0
