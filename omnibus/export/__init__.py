"""Vendor export transforms (CSV / JSON) and radio validation."""

from omnibus.export.csv_writer import generate_csv
from omnibus.export.formats import (
    EXPORT_FORMATS,
    SDRPLUS,
    ExportFormat,
    bandwidth_for_mode,
    export_business_frequencies,
    export_kc_repeaters,
    export_to_chirp,
    export_to_opengd77,
    export_to_sdrplus,
    export_to_sdrtrunk,
    export_to_uniden,
    get_format,
)
from omnibus.export.validation import validate_export

__all__ = [
    "generate_csv",
    "ExportFormat", "EXPORT_FORMATS", "SDRPLUS", "get_format",
    "bandwidth_for_mode",
    "export_to_chirp", "export_to_uniden", "export_to_sdrtrunk",
    "export_to_opengd77", "export_kc_repeaters", "export_business_frequencies",
    "export_to_sdrplus",
    "validate_export",
]
