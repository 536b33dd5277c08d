"""
Bulk import of CSV files and RadioReference-style JSON.

The whole import runs in one transaction; each record runs in a savepoint so
a malformed row is recorded as an :class:`ImportRowError` and skipped while
its siblings are kept.  Any other engine failure rolls the entire import back
and propagates.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from omnibus.db.base_repo import Repository
from omnibus.db.database import Database
from omnibus.db.frequency_repo import FrequencyRepository
from omnibus.db.trunked_repo import (
    TalkgroupRepository,
    TrunkedSiteRepository,
    TrunkedSystemRepository,
)
from omnibus.errors import ConstraintError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# Failures that only void the current record.
ROW_ERRORS = (ValidationError, ConstraintError, NotFoundError)

FLOAT_COLUMNS = frozenset({
    "frequency", "transmit_frequency", "offset", "distance_from_kc",
    "latitude", "longitude", "range_miles",
})
INT_COLUMNS = frozenset({
    "active", "priority", "decimal_id",
    "export_chirp", "export_uniden", "export_sdrtrunk", "export_sdrplus", "export_opengd77",
})

CSV_KINDS = {
    "frequency": "frequency",
    "frequencies": "frequency",
    "trunked": "trunked_system",
    "trunked_system": "trunked_system",
    "trunked_systems": "trunked_system",
    "site": "trunked_site",
    "trunked_site": "trunked_site",
    "trunked_sites": "trunked_site",
    "talkgroup": "talkgroup",
    "talkgroups": "talkgroup",
}

SITE_PREFIX = "site_"

# Values a single column can hold.
SCALAR_TYPES = (str, int, float, bool)


@dataclass
class ImportRowError:
    row: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "message": self.message}


@dataclass
class ImportResult:
    success: bool = True
    total_records: int = 0
    imported_records: int = 0
    errors: list[ImportRowError] = field(default_factory=list)

    @classmethod
    def parse_failure(cls, message: str) -> "ImportResult":
        return cls(success=False, errors=[ImportRowError(0, message)])

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total_records": self.total_records,
            "imported_records": self.imported_records,
            "errors": [e.to_dict() for e in self.errors],
        }


def _convert(column: str, value: str) -> Any:
    if column in FLOAT_COLUMNS:
        try:
            return float(value)
        except ValueError:
            raise ValidationError(f"Invalid {column} value: {value!r}") from None
    if column in INT_COLUMNS:
        try:
            return int(value)
        except ValueError:
            raise ValidationError(f"Invalid {column} value: {value!r}") from None
    return value


def _clean(record: Mapping[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    """Drop empty cells and unknown columns, convert numeric columns."""
    out: dict[str, Any] = {}
    for key, value in record.items():
        if key not in allowed or value is None:
            continue
        if not isinstance(value, SCALAR_TYPES):
            raise ValidationError(
                f"Invalid {key} value: expected text or a number, got {type(value).__name__}"
            )
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
            value = _convert(key, value)
        out[key] = value
    return out


def _entries(parent: Mapping[str, Any], key: str) -> list[Any]:
    """Nested array of a RadioReference record; absent or null means empty."""
    value = parent.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"'{key}' must be an array, got {type(value).__name__}")
    return value


def _chunks(items: Sequence[Any], size: int) -> Iterable[tuple[int, Sequence[Any]]]:
    size = max(1, size)
    for start in range(0, len(items), size):
        yield start, items[start:start + size]


class ImportService:
    """Bulk loader for frequencies, trunked systems, sites and talkgroups."""

    def __init__(self, db: Database, chunk_size: Optional[int] = None):
        from omnibus.config import get_settings
        self._db = db
        self._chunk_size = chunk_size or get_settings().IMPORT_CHUNK_SIZE
        self._frequencies = FrequencyRepository(db)
        self._systems = TrunkedSystemRepository(db)
        self._sites = TrunkedSiteRepository(db)
        self._talkgroups = TalkgroupRepository(db)

    # -- driver ----------------------------------------------------------------

    def _run(
        self,
        records: Sequence[Any],
        handle: Callable[[Any], None],
        on_chunk: Optional[ProgressCallback] = None,
    ) -> ImportResult:
        result = ImportResult(total_records=len(records))
        with self._db.transaction():
            for start, chunk in _chunks(records, self._chunk_size):
                for offset, record in enumerate(chunk):
                    row = start + offset + 1
                    try:
                        with self._db.transaction():
                            handle(record)
                    except ROW_ERRORS as exc:
                        result.errors.append(ImportRowError(row, str(exc)))
                    else:
                        result.imported_records += 1
                if on_chunk is not None:
                    on_chunk(start + len(chunk), len(records))
        logger.info(
            f"Imported {result.imported_records}/{result.total_records} record(s), "
            f"{len(result.errors)} error(s)"
        )
        return result

    # -- CSV -------------------------------------------------------------------

    def import_csv(
        self,
        text: str,
        kind: str = "frequency",
        on_chunk: Optional[ProgressCallback] = None,
    ) -> ImportResult:
        """Import CSV text with a header row; ``kind`` names the target table."""
        target = CSV_KINDS.get(kind.strip().lower())
        if target is None:
            raise ValidationError(f"Unknown import type: {kind}")
        try:
            records = self._parse_csv(text)
        except (csv.Error, ValueError) as exc:
            logger.error(f"CSV import failed to parse: {exc}")
            return ImportResult.parse_failure(str(exc))

        handlers: dict[str, Callable[[Any], None]] = {
            "frequency": self._import_frequency_row,
            "trunked_system": self._import_system_row,
            "trunked_site": self._import_site_row,
            "talkgroup": self._import_talkgroup_row,
        }
        return self._run(records, handlers[target], on_chunk)

    @staticmethod
    def _parse_csv(text: str) -> list[dict[str, Any]]:
        reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
        if not reader.fieldnames:
            raise ValueError("CSV has no header row")
        reader.fieldnames = [h.strip() for h in reader.fieldnames]
        return list(reader)

    @staticmethod
    def _check_shape(record: Mapping[Any, Any]) -> None:
        # DictReader files surplus cells under the ``None`` key
        if record.get(None):
            raise ValidationError("Row has more values than the header")

    def _writable(self, repo: Repository[Any]) -> frozenset[str]:
        return repo.MODEL.writable_columns()

    def _import_frequency_row(self, record: Mapping[Any, Any]) -> None:
        self._check_shape(record)
        self._frequencies.create(_clean(record, self._writable(self._frequencies)))

    def _import_system_row(self, record: Mapping[Any, Any]) -> None:
        self._check_shape(record)
        system_fields: dict[str, Any] = {}
        site_fields: dict[str, Any] = {}
        for key, value in record.items():
            if key is None:
                continue
            if key.startswith(SITE_PREFIX):
                column = key[len(SITE_PREFIX):]
                site_fields["site_id" if column == "id" else column] = value
            else:
                system_fields[key] = value
        system_id = self._systems.create(_clean(system_fields, self._writable(self._systems)))
        site = _clean(site_fields, self._writable(self._sites) - {"system_id"})
        if site:
            site["system_id"] = system_id
            self._sites.create(site)

    def _resolve_system(self, value: Any) -> int:
        """External system identifier first, then the surrogate key."""
        text = str(value).strip()
        system = self._systems.find_by_system_id(text)
        if system is not None:
            return int(system.id)  # type: ignore[arg-type]
        if text.isdigit() and self._systems.get_by_id(int(text)) is not None:
            return int(text)
        raise NotFoundError(f"Unknown trunked system: {text}")

    def _import_site_row(self, record: Mapping[Any, Any]) -> None:
        self._check_shape(record)
        fields = _clean(record, self._writable(self._sites))
        if "system_id" in fields:
            fields["system_id"] = self._resolve_system(fields["system_id"])
        self._sites.create(fields)

    def _import_talkgroup_row(self, record: Mapping[Any, Any]) -> None:
        self._check_shape(record)
        fields = _clean(record, self._writable(self._talkgroups))
        if "system_id" in fields:
            fields["system_id"] = self._resolve_system(fields["system_id"])
        self._talkgroups.create(fields)

    # -- RadioReference JSON ---------------------------------------------------

    def import_radio_reference(
        self,
        data: str | bytes | Mapping[str, Any],
        on_chunk: Optional[ProgressCallback] = None,
    ) -> ImportResult:
        """
        Import ``{"systems": [...], "conventional": [...]}``.  Each system
        (with its nested sites and talkgroups) and each conventional entry is
        one record; rows are numbered systems first, then conventional.
        """
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as exc:
                logger.error(f"RadioReference import failed to parse: {exc}")
                return ImportResult.parse_failure(f"Invalid JSON: {exc}")
        if not isinstance(data, Mapping):
            return ImportResult.parse_failure("Expected a JSON object with 'systems' and/or 'conventional'")

        systems = data.get("systems") or []
        conventional = data.get("conventional") or []
        if not isinstance(systems, list) or not isinstance(conventional, list):
            return ImportResult.parse_failure("'systems' and 'conventional' must be arrays")

        records = [("system", s) for s in systems] + [("conventional", c) for c in conventional]

        def handle(item: tuple[str, Any]) -> None:
            section, payload = item
            if not isinstance(payload, Mapping):
                raise ValidationError(f"{section} entry must be an object")
            if section == "system":
                self._import_rr_system(payload)
            else:
                self._import_rr_conventional(payload)

        return self._run(records, handle, on_chunk)

    def _import_rr_system(self, system: Mapping[str, Any]) -> None:
        if system.get("id") is None:
            raise ValidationError("System ID is required")
        system_id = self._systems.create(_clean({
            "system_id": str(system.get("id")),
            "name": system.get("name"),
            "type": system.get("type"),
            "system_class": system.get("systemClass"),
            "system_protocol": system.get("protocol"),
            "description": system.get("description"),
            "wacn": system.get("wacn"),
            "active": 1,
        }, self._writable(self._systems)))

        for site in _entries(system, "sites"):
            if not isinstance(site, Mapping):
                raise ValidationError("site entry must be an object")
            self._sites.create(_clean({
                "system_id": system_id,
                "site_id": None if site.get("id") is None else str(site.get("id")),
                "name": site.get("name"),
                "county": site.get("county"),
                "state": site.get("state"),
                "latitude": site.get("latitude"),
                "longitude": site.get("longitude"),
                "range_miles": site.get("range"),
            }, self._writable(self._sites)))

        for tg in _entries(system, "talkgroups"):
            if not isinstance(tg, Mapping):
                raise ValidationError("talkgroup entry must be an object")
            self._talkgroups.create(_clean({
                "system_id": system_id,
                "decimal_id": tg.get("decimal"),
                "hex_id": tg.get("hex"),
                "alpha_tag": tg.get("alphaTag"),
                "description": tg.get("description"),
                "mode": tg.get("mode"),
                "category": tg.get("category"),
                "priority": tg.get("priority") or 0,
                "active": 1,
            }, self._writable(self._talkgroups)))

    def _import_rr_conventional(self, freq: Mapping[str, Any]) -> None:
        tags = freq.get("tags")
        if isinstance(tags, (list, tuple)):
            tags = ",".join(str(t) for t in tags)
        self._frequencies.create(_clean({
            "frequency": freq.get("frequency"),
            "name": freq.get("name"),
            "description": freq.get("description"),
            "mode": freq.get("mode"),
            "tone_mode": freq.get("toneMode"),
            "tone_freq": freq.get("toneFreq"),
            "county": freq.get("county"),
            "state": freq.get("state"),
            "agency": freq.get("agency"),
            "callsign": freq.get("callsign"),
            "service_type": freq.get("serviceType"),
            "tags": tags,
            "duplex": freq.get("duplex"),
            "offset": freq.get("offset"),
            "active": 1,
        }, self._writable(self._frequencies)))

    # -- dispatcher ------------------------------------------------------------

    def import_data(
        self,
        text: str,
        fmt: str,
        kind: str = "frequency",
        on_chunk: Optional[ProgressCallback] = None,
    ) -> ImportResult:
        """Route ``csv`` text to :meth:`import_csv` and ``json`` to :meth:`import_radio_reference`."""
        fmt = fmt.strip().lower()
        if fmt == "csv":
            return self.import_csv(text, kind, on_chunk)
        if fmt == "json":
            return self.import_radio_reference(text, on_chunk)
        raise ValidationError(f"Unknown import format: {fmt}")
