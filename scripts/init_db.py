#!/usr/bin/env python3
"""Initialize the catalog database and optionally seed it from a YAML file."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import yaml

from omnibus.config import get_settings
from omnibus.db.county_repo import CountyRepository
from omnibus.db.database import Database
from omnibus.db.radio_repo import RadioRepository
from omnibus.errors import OmnibusError
from omnibus.services.settings_service import SettingsService

logger = logging.getLogger("init_db")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the catalog database")
    parser.add_argument("--seed", type=str, help="YAML file with counties, radios and settings")
    parser.add_argument("--db-path", type=str, help="Override database path")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=get_settings().LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = Database(path=args.db_path) if args.db_path else Database()
    db.init()
    logger.info(f"Database initialized at: {db.path}")

    if args.seed:
        seed(db, Path(args.seed))

    db.close()
    logger.info("Done.")
    return 0


def seed(db: Database, path: Path) -> dict[str, int]:
    """Load reference data; a table that already has rows is left alone."""
    with open(path, "r", encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    added = {
        "counties": _seed_rows(CountyRepository(db), data.get("counties", []), "county"),
        "radios": _seed_rows(RadioRepository(db), data.get("radios", []), "radio"),
        "settings": 0,
    }

    settings = SettingsService(db)
    for key, value in (data.get("settings") or {}).items():
        settings.set(key, value)
        added["settings"] += 1
    return added


def _seed_rows(repo, rows: list[dict[str, Any]], label: str) -> int:
    if repo.count() > 0:
        logger.info(f"  {repo.table} already populated, skipping")
        return 0
    added = 0
    for row in rows:
        try:
            repo.create(row)
        except OmnibusError as e:
            logger.warning(f"  Skipping {label} {row.get('name', '?')}: {e}")
            continue
        added += 1
    logger.info(f"  Added {added} {repo.table}")
    return added


if __name__ == "__main__":
    sys.exit(main())
