"""
Pure export transforms.

Each function takes rows (mappings, usually read from an export view or
``Frequency.to_dict()``) and returns the text of one vendor file.  Numbers
are formatted here; rows are expected to carry real numbers already.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from omnibus.export.csv_writer import generate_csv

Row = Mapping[str, Any]

CHIRP_HEADERS = (
    "Location", "Name", "Frequency", "Duplex", "Offset", "Tone", "rToneFreq",
    "cToneFreq", "DtcsCode", "DtcsPolarity", "Mode", "TStep", "Skip", "Comment",
    "URCALL", "RPT1CALL", "RPT2CALL",
)
UNIDEN_HEADERS = (
    "Name", "Frequency", "Mode", "Tone", "Service Type", "County", "State", "Alpha Tag",
)
OPENGD77_HEADERS = (
    "Name", "Frequency", "Transmit Frequency", "Mode", "Tone", "Alpha Tag",
)
KC_REPEATER_HEADERS = (
    "Name", "Frequency", "Transmit Frequency", "Mode", "Tone", "County", "Callsign", "Description",
)
BUSINESS_HEADERS = (
    "Name", "Frequency", "Mode", "Agency", "Service Type", "Description",
)

CHIRP_NAME_LENGTH = 8

_BANDWIDTHS = {
    "FM": 12500,
    "NFM": 12500,
    "AM": 10000,
    "USB": 3000,
    "LSB": 3000,
}
DEFAULT_BANDWIDTH = 12500


def fixed5(value: Any) -> str:
    """Fixed 5-decimal rendering; missing or zero values render empty."""
    if value is None or value == "" or value == 0:
        return ""
    return f"{float(value):.5f}"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def bandwidth_for_mode(mode: Optional[str]) -> int:
    return _BANDWIDTHS.get((mode or "").upper(), DEFAULT_BANDWIDTH)


# -- CSV formats ---------------------------------------------------------------

def export_to_chirp(rows: Iterable[Row]) -> str:
    out = []
    for row in rows:
        out.append([
            "",
            _text(row.get("name"))[:CHIRP_NAME_LENGTH],
            fixed5(row.get("frequency")),
            _text(row.get("duplex")),
            fixed5(row.get("offset")),
            _text(row.get("tone_mode")),
            _text(row.get("tone_freq")),
            _text(row.get("tone_freq")),
            "",
            "",
            _text(row.get("mode")),
            "",
            "",
            _text(row.get("description") or row.get("comment")),
            "",
            "",
            "",
        ])
    return generate_csv(CHIRP_HEADERS, out)


def export_to_uniden(rows: Iterable[Row]) -> str:
    out = [
        [
            _text(row.get("name")),
            fixed5(row.get("frequency")),
            _text(row.get("mode")),
            _text(row.get("tone_freq")),
            _text(row.get("service_type")),
            _text(row.get("county")),
            _text(row.get("state")),
            _text(row.get("alpha_tag")),
        ]
        for row in rows
    ]
    return generate_csv(UNIDEN_HEADERS, out)


def export_to_opengd77(rows: Iterable[Row]) -> str:
    out = [
        [
            _text(row.get("name")),
            fixed5(row.get("frequency")),
            fixed5(row.get("transmit_frequency")),
            _text(row.get("mode")),
            _text(row.get("tone_freq")),
            _text(row.get("alpha_tag")),
        ]
        for row in rows
    ]
    return generate_csv(OPENGD77_HEADERS, out)


def export_kc_repeaters(rows: Iterable[Row]) -> str:
    out = [
        [
            _text(row.get("name")),
            fixed5(row.get("frequency")),
            fixed5(row.get("transmit_frequency")),
            _text(row.get("mode")),
            _text(row.get("tone_freq")),
            _text(row.get("county")),
            _text(row.get("callsign")),
            _text(row.get("description")),
        ]
        for row in rows
    ]
    return generate_csv(KC_REPEATER_HEADERS, out)


def export_business_frequencies(rows: Iterable[Row]) -> str:
    out = [
        [
            _text(row.get("name")),
            fixed5(row.get("frequency")),
            _text(row.get("mode")),
            _text(row.get("agency")),
            _text(row.get("service_type")),
            _text(row.get("description")),
        ]
        for row in rows
    ]
    return generate_csv(BUSINESS_HEADERS, out)


# -- JSON formats --------------------------------------------------------------

def export_to_sdrtrunk(conventional: Iterable[Row], trunked: Iterable[Row] = ()) -> str:
    """Conventional channels plus business trunked systems (no sites or talkgroups)."""
    payload = {
        "conventional": [
            {
                "name": row.get("name"),
                "frequency": row.get("frequency"),
                "description": row.get("description") or "",
                "mode": row.get("mode"),
                "county": row.get("county") or "",
                "state": row.get("state") or "",
                "serviceType": row.get("service_type") or "",
            }
            for row in conventional
        ],
        "trunked": [
            {
                "name": row.get("name"),
                "type": "Business",
                "systemClass": "Business",
                "description": row.get("description") or "",
                "businessType": row.get("business_type") or "",
                "businessOwner": row.get("business_owner") or "",
            }
            for row in trunked
        ],
    }
    return json.dumps(payload, indent=2)


def export_to_sdrplus(frequencies: Iterable[Row]) -> str:
    bookmarks = [
        {
            "name": row.get("name"),
            "frequency": row.get("frequency"),
            "description": row.get("description") or "",
            "mode": row.get("mode"),
            "bandwidth": bandwidth_for_mode(row.get("mode")),
        }
        for row in frequencies
    ]
    return json.dumps({"bookmarks": bookmarks}, indent=2)


# -- Registry ------------------------------------------------------------------

@dataclass(frozen=True)
class ExportFormat:
    """A downloadable format: which views feed it and how it is rendered."""
    name: str
    views: tuple[str, ...]
    render: Callable[..., str]
    media_type: str
    extension: str

    @property
    def filename(self) -> str:
        return f"{self.name}.{self.extension}"


_CSV = "text/csv"
_JSON = "application/json"

EXPORT_FORMATS: dict[str, ExportFormat] = {
    fmt.name: fmt
    for fmt in (
        ExportFormat("chirp", ("chirp_export",), export_to_chirp, _CSV, "csv"),
        ExportFormat("uniden", ("uniden_export",), export_to_uniden, _CSV, "csv"),
        ExportFormat(
            "sdrtrunk",
            ("sdrtrunk_conventional", "business_trunked"),
            export_to_sdrtrunk,
            _JSON,
            "json",
        ),
        ExportFormat("opengd77", ("opengd77_export",), export_to_opengd77, _CSV, "csv"),
        ExportFormat("kc_repeaters", ("kc_repeaters",), export_kc_repeaters, _CSV, "csv"),
        ExportFormat(
            "business_frequencies",
            ("business_frequencies",),
            export_business_frequencies,
            _CSV,
            "csv",
        ),
    )
}

# Not view-backed: SDR++ bookmarks are built from any frequency list.
SDRPLUS = ExportFormat("sdrplus", (), export_to_sdrplus, _JSON, "json")


def get_format(name: str) -> Optional[ExportFormat]:
    key = name.strip().lower()
    if key == SDRPLUS.name:
        return SDRPLUS
    return EXPORT_FORMATS.get(key)


def format_names() -> Sequence[str]:
    return (*EXPORT_FORMATS, SDRPLUS.name)
