"""Shared row <-> dataclass plumbing for the catalog models."""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Any, ClassVar, TypeVar

T = TypeVar("T", bound="RowModel")


class RowModel:
    """Mixin for dataclasses that mirror one table row."""

    TABLE: ClassVar[str] = ""
    # Columns that must stay text even when they look numeric.
    TEXT_FIELDS: ClassVar[frozenset[str]] = frozenset()
    # Columns that must be present and non-empty on create.
    REQUIRED: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def columns(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))  # type: ignore[arg-type]

    @classmethod
    def writable_columns(cls) -> frozenset[str]:
        return frozenset(cls.columns()) - {"id", "created_at", "updated_at"}

    @classmethod
    def from_row(cls: type[T], row: dict[str, Any]) -> T:
        known = set(cls.columns())
        return cls(**{k: v for k, v in row.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]
