"""Tests for CSV and RadioReference JSON bulk import."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from omnibus.db.database import Database
from omnibus.db.frequency_repo import FrequencyRepository
from omnibus.db.trunked_repo import (
    TalkgroupRepository,
    TrunkedSiteRepository,
    TrunkedSystemRepository,
)
from omnibus.errors import StoreError, ValidationError
from omnibus.services.import_service import ImportService


def _make_db() -> Database:
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    db = Database(path=Path(tmp.name))
    db.init()
    return db


FREQUENCY_HEADER = "frequency,name,mode,service_type,county,state"


def _frequency_csv(bad_row: int | None = None, rows: int = 10) -> str:
    lines = [FREQUENCY_HEADER]
    for n in range(1, rows + 1):
        freq = "abc" if n == bad_row else f"{146 + n / 100:.2f}"
        lines.append(f"{freq},Channel {n},FM,Ham,Jackson,MO")
    return "\n".join(lines)


# ===========================================================================
# 1. CSV import
# ===========================================================================

class TestCsvImport(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.service = ImportService(self.db, chunk_size=3)
        self.freqs = FrequencyRepository(self.db)

    def tearDown(self):
        self.db.close()

    def test_clean_file(self):
        result = self.service.import_csv(_frequency_csv(), "frequency")
        self.assertTrue(result.success)
        self.assertEqual(result.total_records, 10)
        self.assertEqual(result.imported_records, 10)
        self.assertEqual(result.errors, [])
        first = self.freqs.list_all()[0]
        self.assertEqual(first.frequency, 146.01)
        self.assertEqual(first.county, "Jackson")

    def test_bad_row_is_skipped(self):
        result = self.service.import_csv(_frequency_csv(bad_row=4), "frequency")
        self.assertTrue(result.success)
        self.assertEqual(result.total_records, 10)
        self.assertEqual(result.imported_records, 9)
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(result.errors[0].row, 4)
        self.assertIn("frequency", result.errors[0].message)
        self.assertEqual(self.freqs.count(), 9)
        self.assertNotIn("Channel 4", [f.name for f in self.freqs.list_all()])

    def test_missing_required_field(self):
        text = "frequency,name,mode\n146.52,,FM\n146.55,Second,FM"
        result = self.service.import_csv(text)
        self.assertEqual(result.imported_records, 1)
        self.assertEqual(result.errors[0].row, 1)

    def test_surplus_cells_rejected(self):
        text = "frequency,name,mode\n146.52,One,FM,extra\n146.55,Two,FM"
        result = self.service.import_csv(text)
        self.assertEqual(result.imported_records, 1)
        self.assertEqual(result.errors[0].row, 1)

    def test_bom_and_padded_headers(self):
        text = "\ufefffrequency , name ,mode\n146.52,Simplex,FM"
        result = self.service.import_csv(text)
        self.assertEqual(result.imported_records, 1)
        self.assertEqual(self.freqs.list_all()[0].name, "Simplex")

    def test_unknown_columns_ignored(self):
        text = "frequency,name,mode,color\n146.52,Simplex,FM,blue"
        self.assertEqual(self.service.import_csv(text).imported_records, 1)

    def test_empty_text_is_parse_failure(self):
        result = self.service.import_csv("", "frequency")
        self.assertFalse(result.success)
        self.assertEqual(result.imported_records, 0)
        self.assertEqual(result.errors[0].row, 0)

    def test_unknown_kind(self):
        with self.assertRaises(ValidationError):
            self.service.import_csv(_frequency_csv(), "pagers")

    def test_progress_callback(self):
        calls = []
        self.service.import_csv(_frequency_csv(), on_chunk=lambda done, total: calls.append((done, total)))
        self.assertEqual(calls, [(3, 10), (6, 10), (9, 10), (10, 10)])

    def test_fatal_error_rolls_back_everything(self):
        original = FrequencyRepository.create
        calls = {"n": 0}

        def flaky(repo, fields):
            calls["n"] += 1
            if calls["n"] == 2:
                raise StoreError("disk I/O error")
            return original(repo, fields)

        with mock.patch.object(FrequencyRepository, "create", new=flaky):
            with self.assertRaises(StoreError):
                self.service.import_csv(_frequency_csv())
        self.assertEqual(self.freqs.count(), 0)

    def test_trunked_systems_with_sites(self):
        text = (
            "system_id,name,type,system_class,site_id,site_name,site_county\n"
            "1234,Metro P25,P25,Public Safety,001,Downtown,Jackson\n"
            "LTR9,Acme LTR,LTR,Business,,,\n"
        )
        result = self.service.import_csv(text, "trunked")
        self.assertEqual(result.imported_records, 2)
        systems = TrunkedSystemRepository(self.db)
        metro = systems.find_by_system_id("1234")
        self.assertEqual(metro.system_id, "1234")
        sites = TrunkedSiteRepository(self.db).list_all()
        self.assertEqual(len(sites), 1)
        self.assertEqual(sites[0].site_id, "001")
        self.assertEqual(sites[0].system_id, metro.id)
        self.assertEqual(sites[0].county, "Jackson")

    def test_talkgroups_resolve_external_system_id(self):
        systems = TrunkedSystemRepository(self.db)
        metro = systems.create({"system_id": "1234", "name": "Metro P25", "type": "P25"})
        text = (
            "system_id,decimal_id,alpha_tag,category\n"
            "1234,100,KCPD Disp,Law\n"
            f"{metro},200,KCFD Disp,Fire\n"
            "9999,300,Nowhere,Law\n"
        )
        result = self.service.import_csv(text, "talkgroups")
        self.assertEqual(result.imported_records, 2)
        self.assertEqual(result.errors[0].row, 3)
        self.assertIn("9999", result.errors[0].message)
        tgs = TalkgroupRepository(self.db).list_all({"system_id": metro})
        self.assertEqual([t.decimal_id for t in tgs], [100, 200])


# ===========================================================================
# 2. RadioReference JSON import
# ===========================================================================

RR_PAYLOAD = {
    "systems": [
        {
            "id": 1234,
            "name": "Metro P25",
            "type": "P25",
            "systemClass": "Public Safety",
            "protocol": "P25",
            "sites": [{"id": "001", "name": "Downtown", "county": "Jackson", "state": "MO"}],
            "talkgroups": [
                {"decimal": 100, "hex": "064", "alphaTag": "KCPD Disp", "category": "Law"},
                {"decimal": 200, "alphaTag": "KCFD Disp", "category": "Fire", "priority": 2},
            ],
        },
        {"name": "No Id", "type": "LTR"},
    ],
    "conventional": [
        {
            "frequency": 146.52, "name": "National Simplex", "mode": "FM",
            "serviceType": "Ham", "tags": ["simplex", "calling"],
        },
        "not an object",
    ],
}


class TestRadioReferenceImport(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.service = ImportService(self.db)

    def tearDown(self):
        self.db.close()

    def test_import(self):
        result = self.service.import_radio_reference(json.dumps(RR_PAYLOAD))
        self.assertTrue(result.success)
        self.assertEqual(result.total_records, 4)
        self.assertEqual(result.imported_records, 2)
        self.assertEqual([e.row for e in result.errors], [2, 4])

        complete = TrunkedSystemRepository(self.db).get_complete_system(
            TrunkedSystemRepository(self.db).find_by_system_id("1234").id
        )
        self.assertEqual(complete.system.system_protocol, "P25")
        self.assertEqual([s.site_id for s in complete.sites], ["001"])
        self.assertEqual([t.alpha_tag for t in complete.talkgroups], ["KCPD Disp", "KCFD Disp"])
        self.assertEqual(complete.talkgroups[1].priority, 2)

        freq = FrequencyRepository(self.db).list_all()[0]
        self.assertEqual(freq.tags, "simplex,calling")
        self.assertEqual(freq.service_type, "Ham")

    def test_accepts_mapping(self):
        result = self.service.import_radio_reference({"conventional": RR_PAYLOAD["conventional"][:1]})
        self.assertEqual(result.imported_records, 1)

    def test_bad_nested_talkgroup_voids_whole_system(self):
        payload = {"systems": [{
            "id": 55, "name": "Broken", "type": "P25",
            "talkgroups": [{"decimal": 1, "alphaTag": "Ok"}, {"decimal": 2}],
        }]}
        result = self.service.import_radio_reference(payload)
        self.assertEqual(result.imported_records, 0)
        self.assertEqual(TrunkedSystemRepository(self.db).count(), 0)
        self.assertEqual(TalkgroupRepository(self.db).count(), 0)

    def test_invalid_json(self):
        result = self.service.import_radio_reference("{systems: oops")
        self.assertFalse(result.success)
        self.assertEqual(result.errors[0].row, 0)

    def test_not_an_object(self):
        result = self.service.import_radio_reference("[1, 2, 3]")
        self.assertFalse(result.success)

    def test_nested_value_voids_only_its_record(self):
        good = {"frequency": 146.52, "name": "Simplex", "mode": "FM"}
        bad = {"frequency": 146.55, "name": "Odd", "mode": "FM", "description": {"x": 1}}
        result = self.service.import_radio_reference({"conventional": [good, bad]})
        self.assertTrue(result.success)
        self.assertEqual(result.imported_records, 1)
        self.assertEqual([e.row for e in result.errors], [2])
        self.assertIn("description", result.errors[0].message)
        self.assertEqual([f.name for f in FrequencyRepository(self.db).list_all()], ["Simplex"])

    def test_non_array_sites_voids_only_its_system(self):
        payload = {
            "systems": [
                {"id": 1, "name": "S", "type": "P25", "sites": 5},
                {"id": 2, "name": "T", "type": "P25", "talkgroups": {"decimal": 1}},
            ],
            "conventional": [{"frequency": 146.52, "name": "Simplex", "mode": "FM"}],
        }
        result = self.service.import_radio_reference(payload)
        self.assertEqual(result.total_records, 3)
        self.assertEqual(result.imported_records, 1)
        self.assertEqual([e.row for e in result.errors], [1, 2])
        self.assertIn("sites", result.errors[0].message)
        self.assertIn("talkgroups", result.errors[1].message)
        self.assertEqual(TrunkedSystemRepository(self.db).count(), 0)
        self.assertEqual(FrequencyRepository(self.db).count(), 1)

    def test_import_data_dispatch(self):
        self.assertEqual(self.service.import_data("frequency,name,mode\n146.52,A,FM", "CSV").imported_records, 1)
        self.assertEqual(self.service.import_data(json.dumps({"conventional": []}), "json").total_records, 0)
        with self.assertRaises(ValidationError):
            self.service.import_data("", "xml")


if __name__ == "__main__":
    unittest.main()
