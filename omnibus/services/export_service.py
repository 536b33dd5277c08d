"""Export service: reads export views and saved profiles, renders vendor files."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union

from omnibus.db.base_repo import FilterArg
from omnibus.db.database import Database
from omnibus.db.frequency_repo import FrequencyRepository
from omnibus.db.radio_repo import ExportProfileRepository, RadioRepository
from omnibus.db.trunked_repo import TrunkedSystemRepository
from omnibus.db.view_repo import ViewRepository
from omnibus.errors import NotFoundError, ValidationError
from omnibus.export.formats import (
    SDRPLUS,
    ExportFormat,
    export_to_sdrplus,
    format_names,
    get_format,
)
from omnibus.export.validation import validate_export
from omnibus.models.frequency import Frequency
from omnibus.models.radio import Radio

logger = logging.getLogger(__name__)

# Radio ``type`` / name keywords -> export format used for profile exports.
RADIO_FORMATS: dict[str, str] = {
    "chirp": "chirp",
    "handheld": "chirp",
    "mobile": "chirp",
    "ham": "chirp",
    "uniden": "uniden",
    "scanner": "uniden",
    "sdrtrunk": "sdrtrunk",
    "opengd77": "opengd77",
    "dmr": "opengd77",
    "sdr++": "sdrplus",
    "sdrplus": "sdrplus",
    "sdr": "sdrplus",
}
DEFAULT_PROFILE_FORMAT = "chirp"


@dataclass
class ExportResult:
    content: str
    format: str
    media_type: str
    filename: str
    record_count: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "format": self.format,
            "media_type": self.media_type,
            "filename": self.filename,
            "record_count": self.record_count,
            "warnings": self.warnings,
        }


def format_for_radio(radio: Radio) -> str:
    """Pick the export format for a radio from its type, then its name."""
    for text in (radio.type, radio.name):
        lowered = (text or "").lower()
        if lowered in RADIO_FORMATS:
            return RADIO_FORMATS[lowered]
    for text in (radio.type, radio.name):
        lowered = (text or "").lower()
        for keyword, fmt in RADIO_FORMATS.items():
            if keyword in lowered:
                return fmt
    return DEFAULT_PROFILE_FORMAT


class ExportService:
    """
    Facade over the export views and transforms.

    View-backed formats read their rows through :class:`ViewRepository`;
    SDR++ bookmarks and profile exports render an arbitrary frequency list.
    """

    def __init__(self, db: Database):
        self._views = ViewRepository(db)
        self._frequencies = FrequencyRepository(db)
        self._radios = RadioRepository(db)
        self._profiles = ExportProfileRepository(db)
        self._systems = TrunkedSystemRepository(db)

    @staticmethod
    def _format(name: str) -> ExportFormat:
        fmt = get_format(name)
        if fmt is None:
            raise ValidationError(
                f"Unknown export format: {name} (expected one of: {', '.join(format_names())})"
            )
        return fmt

    # -- view-backed formats ---------------------------------------------------

    def export(self, format_name: str) -> ExportResult:
        """Render one of the view-backed formats (``chirp``, ``uniden``, ...)."""
        fmt = self._format(format_name)
        if fmt is SDRPLUS:
            return self.export_sdrplus()
        inputs = [self._views.rows(view) for view in fmt.views]
        content = fmt.render(*inputs)
        count = sum(len(rows) for rows in inputs)
        logger.info(f"Exported {count} record(s) as {fmt.name}")
        return ExportResult(content, fmt.name, fmt.media_type, fmt.filename, count)

    # -- SDR++ -----------------------------------------------------------------

    def export_sdrplus(
        self,
        frequencies: Optional[Iterable[Union[Frequency, Mapping[str, Any]]]] = None,
        flt: FilterArg = None,
    ) -> ExportResult:
        """
        SDR++ bookmarks for an explicit list, a filter, or (neither given)
        every active frequency flagged ``export_sdrplus``.
        """
        if frequencies is None:
            if flt is None:
                frequencies = [
                    f for f in self._frequencies.list_all({"active": True}) if f.export_sdrplus
                ]
            else:
                frequencies = self._frequencies.list_all(flt)
        rows = [_as_row(f) for f in frequencies]
        return ExportResult(
            export_to_sdrplus(rows), SDRPLUS.name, SDRPLUS.media_type, SDRPLUS.filename, len(rows)
        )

    # -- saved profiles --------------------------------------------------------

    def export_profile(self, profile_id: int, format_name: Optional[str] = None) -> ExportResult:
        """
        Replay a saved profile: decode its filter, list and sort frequencies,
        validate them against the profile's radio and render them.  Validation
        messages are returned as warnings and never block the export.
        """
        profile = self._profiles.get_by_id(profile_id)
        if profile is None:
            raise NotFoundError(f"Export profile {profile_id} not found")
        radio = self._radios.get_by_id(profile.radio_id)
        if radio is None:
            raise NotFoundError(f"Radio {profile.radio_id} not found")

        try:
            filter_data = profile.filter_dict()
        except ValueError as exc:
            raise ValidationError(f"Export profile {profile_id} has an invalid filter: {exc}") from None
        frequencies = self._frequencies.list_all(filter_data, profile.sort_order)
        warnings = validate_export(frequencies, radio)

        fmt = self._format(format_name or format_for_radio(radio))
        rows = [f.to_dict() for f in frequencies]
        if fmt.name == "sdrtrunk":
            content = fmt.render(rows, [])
        else:
            content = fmt.render(rows)
        filename = f"{_slug(profile.name)}.{fmt.extension}"
        logger.info(
            f"Exported profile {profile.name!r}: {len(rows)} record(s) as {fmt.name}, "
            f"{len(warnings)} warning(s)"
        )
        return ExportResult(content, fmt.name, fmt.media_type, filename, len(rows), warnings)

    # -- trunked systems -------------------------------------------------------

    def export_trunked_system(self, system_id: int) -> ExportResult:
        """JSON dump of one system with its sites and talkgroups."""
        complete = self._systems.get_complete_system(system_id)
        if complete is None:
            raise NotFoundError(f"Trunked system {system_id} not found")
        content = json.dumps(complete.to_dict(), indent=2)
        count = 1 + len(complete.sites) + len(complete.talkgroups)
        filename = f"{_slug(complete.system.name)}.json"
        return ExportResult(content, "trunked_system", "application/json", filename, count)


def _as_row(item: Union[Frequency, Mapping[str, Any]]) -> Mapping[str, Any]:
    return item if isinstance(item, Mapping) else item.to_dict()


def _slug(text: str) -> str:
    cleaned = "".join(c if c.isalnum() else "_" for c in text.strip().lower())
    return "_".join(part for part in cleaned.split("_") if part) or "export"
