"""Services module"""
from .catalog_service import CatalogService
from .export_service import ExportResult, ExportService
from .import_service import ImportResult, ImportRowError, ImportService
from .settings_service import SettingsService

__all__ = [
    "CatalogService",
    "ExportService", "ExportResult",
    "ImportService", "ImportResult", "ImportRowError",
    "SettingsService",
]
