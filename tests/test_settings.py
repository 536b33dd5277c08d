"""Tests for typed application settings and the seed loader."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from omnibus.config import get_repo_root
from omnibus.db.county_repo import CountyRepository
from omnibus.db.database import Database
from omnibus.db.radio_repo import RadioRepository
from omnibus.db.settings_repo import SettingsRepository
from omnibus.errors import ValidationError
from omnibus.models.setting import SettingType
from omnibus.services.settings_service import SettingsService
from scripts.init_db import seed


def _make_db() -> Database:
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    db = Database(path=Path(tmp.name))
    db.init()
    return db


class TestSettingsService(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.settings = SettingsService(self.db)

    def tearDown(self):
        self.db.close()

    def test_defaults_before_any_set(self):
        self.assertEqual(self.settings.get("activeTab", "dashboard"), "dashboard")
        self.assertEqual(self.settings.get("activeTab"), "dashboard")
        self.assertIs(self.settings.get("darkMode"), False)
        self.assertIsNone(self.settings.get("neverSet"))
        self.assertEqual(self.settings.get("neverSet", 5), 5)

    def test_typed_round_trips(self):
        self.settings.set("darkMode", True)
        self.settings.set("pageSize", 50)
        self.settings.set("zoom", 1.25)
        self.settings.set("modals", {"import": True, "export": False})
        self.settings.set("activeTab", "frequencies")
        self.assertIs(self.settings.get("darkMode"), True)
        self.assertEqual(self.settings.get("pageSize"), 50)
        self.assertEqual(self.settings.get("zoom"), 1.25)
        self.assertEqual(self.settings.get("modals"), {"import": True, "export": False})
        self.assertEqual(self.settings.get("activeTab"), "frequencies")

    def test_stored_text_and_type_tags(self):
        repo = SettingsRepository(self.db)
        self.settings.set("darkMode", False)
        self.settings.set("modals", [1, 2])
        self.assertEqual(repo.get("darkMode").value, "false")
        self.assertEqual(repo.get("darkMode").type, SettingType.BOOLEAN)
        self.assertEqual(repo.get("modals").value, "[1, 2]")
        self.assertEqual(repo.get("modals").type, SettingType.JSON)

    def test_explicit_type(self):
        self.settings.set("threshold", "42", "number")
        self.assertEqual(self.settings.get("threshold"), 42)

    def test_invalid_type_rejected(self):
        with self.assertRaises(ValidationError):
            self.settings.set("darkMode", True, "toggle")

    def test_upsert_keeps_one_row(self):
        self.settings.set("activeTab", "map")
        self.settings.set("activeTab", "exports")
        rows = self.db.fetchall("SELECT * FROM app_settings WHERE key = ?", ("activeTab",))
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["value"], "exports")

    def test_delete(self):
        self.settings.set("activeTab", "map")
        self.assertTrue(self.settings.delete("activeTab"))
        self.assertFalse(self.settings.delete("activeTab"))
        self.assertEqual(self.settings.get("activeTab"), "dashboard")

    def test_all_merges_defaults(self):
        self.settings.set("sidebarOpen", False)
        self.settings.set("defaultCounty", "Jackson")
        values = self.settings.all()
        self.assertIs(values["sidebarOpen"], False)
        self.assertEqual(values["defaultCounty"], "Jackson")
        self.assertEqual(values["activeTab"], "dashboard")

    def test_unreadable_value_uses_default(self):
        self.settings.set("modals", "{broken")
        self.db.execute("UPDATE app_settings SET type = 'json' WHERE key = ?", ("modals",))
        with self.assertLogs("omnibus.services.settings_service", level="WARNING"):
            self.assertEqual(self.settings.get("modals"), {})


class TestSeed(unittest.TestCase):
    def test_seed_file(self):
        db = _make_db()
        try:
            path = get_repo_root() / "data" / "seed.yaml"
            added = seed(db, path)
            self.assertGreater(added["counties"], 0)
            self.assertGreater(added["radios"], 0)
            self.assertEqual(added["counties"], CountyRepository(db).count())
            self.assertEqual(added["radios"], RadioRepository(db).count())
            self.assertEqual(SettingsService(db).get("defaultState"), "MO")

            again = seed(db, path)
            self.assertEqual(again["counties"], 0)
            self.assertEqual(again["radios"], 0)
        finally:
            db.close()


if __name__ == "__main__":
    unittest.main()
