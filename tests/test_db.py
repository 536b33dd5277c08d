"""Unit tests for the DB core: schema, transactions, coercion, backup/restore.

Every test uses a fresh temporary SQLite file so tests are isolated and
leave nothing behind in the repository.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

from omnibus.db.coerce import coerce_row, coerce_value
from omnibus.db.county_repo import CountyRepository
from omnibus.db.database import Database, open_catalog
from omnibus.db.frequency_repo import FrequencyRepository
from omnibus.db.radio_repo import ExportProfileRepository, RadioRepository
from omnibus.db.schema import TABLES, VIEW_NAMES
from omnibus.db.trunked_repo import (
    TalkgroupRepository,
    TrunkedSiteRepository,
    TrunkedSystemRepository,
)
from omnibus.errors import ConstraintError, NotInitializedError, StoreError, ValidationError
from omnibus.services.settings_service import SettingsService


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_db() -> Database:
    """Return a Database backed by a fresh temporary file."""
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    db = Database(path=Path(tmp.name))
    db.init()
    return db


def _freq(**overrides):
    fields = dict(frequency=146.52, name="National Simplex", mode="FM")
    fields.update(overrides)
    return fields


# ===========================================================================
# 1. Schema
# ===========================================================================

class TestSchema(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()

    def tearDown(self):
        self.db.close()

    def test_tables_created(self):
        rows = self.db.fetchall("SELECT name FROM sqlite_master WHERE type='table'")
        names = {r["name"] for r in rows}
        for table in TABLES:
            self.assertIn(table, names)

    def test_views_created(self):
        rows = self.db.fetchall("SELECT name FROM sqlite_master WHERE type='view'")
        names = {r["name"] for r in rows}
        self.assertEqual(names, set(VIEW_NAMES.values()))

    def test_init_is_idempotent(self):
        FrequencyRepository(self.db).create(_freq())
        self.db.init()
        self.db.init()
        self.assertEqual(FrequencyRepository(self.db).count(), 1)
        views = self.db.fetchall("SELECT name FROM sqlite_master WHERE type='view'")
        self.assertEqual(len(views), len(VIEW_NAMES))

    def test_foreign_keys_enforced(self):
        row = self.db.fetchone("PRAGMA foreign_keys")
        self.assertEqual(row["foreign_keys"], 1)


# ===========================================================================
# 2. Handle lifecycle and transactions
# ===========================================================================

class TestTransactions(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.repo = FrequencyRepository(self.db)

    def tearDown(self):
        self.db.close()

    def test_not_initialized(self):
        db = Database(path=":memory:")
        with self.assertRaises(NotInitializedError):
            FrequencyRepository(db).list_all()
        with self.assertRaises(StoreError):
            FrequencyRepository(db).create(_freq())

    def test_closed_handle_fails(self):
        self.db.close()
        with self.assertRaises(NotInitializedError) as ctx:
            self.repo.count()
        self.assertEqual(ctx.exception.message, "Database not initialized")

    def test_rollback_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.db.transaction() as conn:
                conn.execute(
                    "INSERT INTO frequencies (frequency, name, mode) VALUES (?, ?, ?)",
                    (146.52, "Lost", "FM"),
                )
                raise RuntimeError("boom")
        self.assertEqual(self.repo.count(), 0)

    def test_nested_transaction_rolls_back_inner_only(self):
        with self.db.transaction():
            self.repo.create(_freq(name="Outer"))
            with self.assertRaises(ValueError):
                with self.db.transaction():
                    self.repo.create(_freq(name="Inner"))
                    raise ValueError("inner failure")
        names = [f.name for f in self.repo.list_all()]
        self.assertEqual(names, ["Outer"])

    def test_engine_error_becomes_store_error(self):
        with self.assertRaises(StoreError) as ctx:
            self.db.fetchall("SELECT * FROM no_such_table")
        self.assertIn("no_such_table", ctx.exception.message)

    def test_foreign_key_violation_is_constraint_error(self):
        with self.assertRaises(ConstraintError):
            TalkgroupRepository(self.db).create(
                {"system_id": 999, "decimal_id": 100, "alpha_tag": "Orphan"}
            )
        self.assertEqual(TalkgroupRepository(self.db).count(), 0)


# ===========================================================================
# 3. Numeric coercion
# ===========================================================================

class TestCoercion(unittest.TestCase):
    def test_numeric_text(self):
        self.assertEqual(coerce_value("88.5"), 88.5)
        self.assertEqual(coerce_value("1234"), 1234)
        self.assertEqual(coerce_value("-12"), -12)

    def test_lossy_text_stays_text(self):
        self.assertEqual(coerce_value("023"), "023")
        self.assertEqual(coerce_value(".5"), ".5")
        self.assertEqual(coerce_value("146.520"), "146.520")

    def test_non_numeric_untouched(self):
        self.assertEqual(coerce_value("FM"), "FM")
        self.assertEqual(coerce_value("1.2.3"), "1.2.3")
        self.assertIsNone(coerce_value(None))
        self.assertEqual(coerce_value(7), 7)

    def test_keep_text_columns(self):
        row = coerce_row({"system_id": "1234", "tone_freq": "100.0"}, keep_text={"system_id"})
        self.assertEqual(row, {"system_id": "1234", "tone_freq": 100.0})

    def test_repository_reads_are_coerced(self):
        db = _make_db()
        try:
            repo = FrequencyRepository(db)
            fid = repo.create(_freq(tone_freq="88.5", tone_mode="CTCSS"))
            dcs = repo.create(_freq(tone_freq="023", tone_mode="DCS"))
            self.assertEqual(repo.get_by_id(fid).tone_freq, 88.5)
            self.assertEqual(repo.get_by_id(dcs).tone_freq, "023")
        finally:
            db.close()

    def test_label_columns_never_coerced(self):
        db = _make_db()
        try:
            repo = FrequencyRepository(db)
            fid = repo.create(_freq(mode="25", duplex="0", tone_mode="100", service_type="911"))
            freq = repo.get_by_id(fid)
            self.assertEqual(
                (freq.mode, freq.duplex, freq.tone_mode, freq.service_type), ("25", "0", "100", "911")
            )
        finally:
            db.close()


# ===========================================================================
# 4. Backup / restore and startup loading
# ===========================================================================

class TestBackupRestore(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.repo = FrequencyRepository(self.db)

    def tearDown(self):
        self.db.close()

    def test_round_trip(self):
        self.repo.create(_freq(name="Alpha"))
        self.repo.create(_freq(frequency=147.0, name="Bravo", export_chirp=1))
        before = [f.to_dict() for f in self.repo.list_all()]
        image = self.db.backup()

        self.repo.create(_freq(frequency=148.0, name="Charlie"))
        self.repo.delete(before[0]["id"])

        self.db.restore(image)
        after = [f.to_dict() for f in self.repo.list_all()]
        self.assertEqual(after, before)

    def _table_rows(self, db, table):
        return sorted(db.fetchall(f"SELECT * FROM {table}"), key=repr)

    def test_restore_into_fresh_store_copies_every_table(self):
        self.repo.create(_freq(name="Alpha", export_chirp=1, tone_freq="88.5"))
        sys_id = TrunkedSystemRepository(self.db).create(
            {"system_id": "1234", "name": "Metro P25", "type": "P25"}
        )
        TrunkedSiteRepository(self.db).create({"system_id": sys_id, "site_id": "001", "name": "Downtown"})
        TalkgroupRepository(self.db).create({"system_id": sys_id, "decimal_id": 100, "alpha_tag": "Disp"})
        radio_id = RadioRepository(self.db).create({
            "name": "UV-5R", "type": "CHIRP", "min_frequency": 136, "max_frequency": 174,
            "supported_modes": "FM",
        })
        ExportProfileRepository(self.db).create({
            "radio_id": radio_id, "name": "Ham", "filter_query": {"mode": ["FM"]},
            "sort_order": "frequency",
        })
        CountyRepository(self.db).create(
            {"name": "Jackson", "state": "MO", "region": "KC Core", "distance_from_kc": 0}
        )
        SettingsService(self.db).set("darkMode", True)

        for table in TABLES:
            self.assertTrue(self._table_rows(self.db, table), table)

        fresh = Database(path=":memory:")
        fresh.init()
        try:
            fresh.restore(self.db.backup())
            for table in TABLES:
                self.assertEqual(
                    self._table_rows(fresh, table), self._table_rows(self.db, table), table
                )
        finally:
            fresh.close()

    def test_backup_is_sqlite_image(self):
        self.assertTrue(self.db.backup().startswith(b"SQLite format 3\x00"))

    def test_restore_rejects_garbage(self):
        self.repo.create(_freq())
        with self.assertRaises(ValidationError):
            self.db.restore(b"definitely not a database")
        self.assertEqual(self.repo.count(), 1)

    def test_from_bytes(self):
        self.repo.create(_freq(name="Copied"))
        copy = Database.from_bytes(self.db.backup())
        try:
            names = [f.name for f in FrequencyRepository(copy).list_all()]
            self.assertEqual(names, ["Copied"])
            self.assertTrue(copy.in_memory)
        finally:
            copy.close()


class TestOpenCatalog(unittest.TestCase):
    def test_open_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = str(Path(tmp) / "catalog.sqlite")
            handle = open_catalog(path, timeout=1)
            try:
                self.assertFalse(handle.fallback)
                FrequencyRepository(handle.db).create(_freq())
            finally:
                handle.db.close()
            reopened = open_catalog(path, timeout=1)
            try:
                self.assertEqual(FrequencyRepository(reopened.db).count(), 1)
            finally:
                reopened.db.close()

    def test_corrupt_file_falls_back(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "corrupt.sqlite"
            path.write_bytes(b"this is not a sqlite database " * 200)
            with self.assertLogs("omnibus.db.database", level="ERROR"):
                handle = open_catalog(str(path), timeout=1)
            try:
                self.assertTrue(handle.fallback)
                self.assertIsNotNone(handle.error)
                self.assertTrue(handle.db.in_memory)
                self.assertEqual(FrequencyRepository(handle.db).count(), 0)
            finally:
                handle.db.close()

    def test_url_source(self):
        source = _make_db()
        FrequencyRepository(source).create(_freq(name="Remote"))
        image = source.backup()
        source.close()

        response = mock.Mock(content=image)
        response.raise_for_status.return_value = None
        with mock.patch("omnibus.db.database.requests.get", return_value=response) as get:
            handle = open_catalog("https://example.org/database.sqlite", timeout=5)
        try:
            get.assert_called_once_with("https://example.org/database.sqlite", timeout=5)
            self.assertFalse(handle.fallback)
            self.assertEqual([f.name for f in FrequencyRepository(handle.db).list_all()], ["Remote"])
        finally:
            handle.db.close()

    def test_network_failure_falls_back(self):
        with mock.patch(
            "omnibus.db.database.requests.get",
            side_effect=requests.ConnectionError("unreachable"),
        ):
            handle = open_catalog("https://example.org/database.sqlite", timeout=5)
        try:
            self.assertTrue(handle.fallback)
            self.assertIn("unreachable", handle.error)
            self.assertEqual(
                {r["name"] for r in handle.db.fetchall("SELECT name FROM sqlite_master WHERE type='view'")},
                set(VIEW_NAMES.values()),
            )
        finally:
            handle.db.close()


if __name__ == "__main__":
    unittest.main()
