"""Database layer: SQLite schema, transactions and table repositories."""

from omnibus.db.database import CatalogHandle, Database, open_catalog
from omnibus.db.schema import SCHEMA_DDL, VIEW_NAMES

__all__ = ["Database", "CatalogHandle", "open_catalog", "SCHEMA_DDL", "VIEW_NAMES"]
