#!/usr/bin/env python3
"""
Unit tests for dictionary JSON persistence
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from dictionary.entry import DictEntry
from dictionary.errors import DictionaryLoadError
from dictionary.persistence import (
    RejectedRecord,
    load_entries,
    quarantine_path,
    quarantine_records,
    save_entries,
)


class TestLoad:

    def test_load_valid_file(self, tmp_path):
        path = tmp_path / "dictdata.json"
        path.write_text(json.dumps([
            {"entry": "apple", "definition": "a red fruit", "author": "alice"},
            {"entry": "banana", "definition": "a yellow fruit", "author": "bob"},
        ]), encoding="utf-8")

        result = load_entries(path)

        assert result.entries == [
            DictEntry("apple", "a red fruit", "alice"),
            DictEntry("banana", "a yellow fruit", "bob"),
        ]
        assert result.rejected == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(DictionaryLoadError) as excinfo:
            load_entries(tmp_path / "missing.json")
        assert excinfo.value.path == tmp_path / "missing.json"

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "dictdata.json"
        path.write_text("[{not json", encoding="utf-8")

        with pytest.raises(DictionaryLoadError):
            load_entries(path)

    def test_top_level_must_be_array(self, tmp_path):
        path = tmp_path / "dictdata.json"
        path.write_text('{"entry": "a"}', encoding="utf-8")

        with pytest.raises(DictionaryLoadError):
            load_entries(path)

    def test_bad_records_are_quarantined(self, tmp_path):
        path = tmp_path / "dictdata.json"
        path.write_text(json.dumps([
            {"entry": "good", "definition": "ok", "author": "alice"},
            {"entry": "no author", "definition": "oops"},
            {"entry": 42, "definition": "numeric name", "author": "bob"},
            "not even an object",
        ]), encoding="utf-8")

        result = load_entries(path)

        assert [e.name for e in result.entries] == ["good"]
        assert [r.index for r in result.rejected] == [1, 2, 3]
        assert all(r.errors for r in result.rejected)


class TestSave:

    def test_round_trip(self, tmp_path):
        path = tmp_path / "dictdata.json"
        entries = [
            DictEntry("café", "coffee place", "alice"),
            DictEntry("apple", "a red fruit", "bob"),
        ]

        save_entries(path, entries)
        loaded = load_entries(path).entries

        assert sorted(loaded, key=lambda e: e.name) == sorted(entries, key=lambda e: e.name)

    def test_pretty_printed_with_two_space_indent(self, tmp_path):
        path = tmp_path / "dictdata.json"
        save_entries(path, [DictEntry("a", "b", "c")])

        text = path.read_text(encoding="utf-8")
        assert text.startswith('[\n  {\n    "entry": "a",')

    def test_non_atomic_write(self, tmp_path):
        path = tmp_path / "dictdata.json"
        save_entries(path, [DictEntry("a", "b", "c")], atomic=False)

        assert load_entries(path).entries == [DictEntry("a", "b", "c")]

    def test_atomic_write_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "dictdata.json"
        save_entries(path, [DictEntry("a", "b", "c")])
        save_entries(path, [DictEntry("d", "e", "f")])

        assert [p.name for p in tmp_path.iterdir()] == ["dictdata.json"]
        assert load_entries(path).entries == [DictEntry("d", "e", "f")]

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "dictdata.json"
        save_entries(path, [])

        assert json.loads(path.read_text(encoding="utf-8")) == []

    def test_failed_atomic_write_cleans_up_temp_file(self, tmp_path, monkeypatch):
        path = tmp_path / "dictdata.json"
        save_entries(path, [DictEntry("a", "b", "c")])
        before = path.read_text(encoding="utf-8")

        def failing_fsync(fd):
            raise OSError("fsync failed")

        monkeypatch.setattr("dictionary.persistence.os.fsync", failing_fsync)

        with pytest.raises(OSError):
            save_entries(path, [DictEntry("d", "e", "f")])

        assert [p.name for p in tmp_path.iterdir()] == ["dictdata.json"]
        assert path.read_text(encoding="utf-8") == before

    @pytest.mark.parametrize("atomic", [True, False])
    def test_unencodable_entry_leaves_file_untouched(self, tmp_path, atomic):
        path = tmp_path / "dictdata.json"
        save_entries(path, [DictEntry("a", "b", "c")])
        before = path.read_text(encoding="utf-8")

        with pytest.raises(UnicodeEncodeError):
            save_entries(path, [DictEntry("bad\ud800", "x", "y")], atomic=atomic)

        assert [p.name for p in tmp_path.iterdir()] == ["dictdata.json"]
        assert path.read_text(encoding="utf-8") == before


# ── Quarantine sidecar ───────────────────────────────────────────

class TestQuarantine:

    def test_path(self, tmp_path):
        assert quarantine_path(tmp_path / "dictdata.json").name == "dictdata.json.rejected"

    def test_records_accumulate_across_calls(self, tmp_path):
        path = tmp_path / "dictdata.json"
        first = RejectedRecord(index=1, record={"entry": "a"}, errors=["missing definition"])
        second = RejectedRecord(index=0, record={"entry": "b"}, errors=["missing definition"])

        quarantine_records(path, [first])
        quarantine_records(path, [first, second])

        saved = json.loads(quarantine_path(path).read_text(encoding="utf-8"))
        assert [item["record"] for item in saved] == [{"entry": "a"}, {"entry": "b"}]
        assert all("quarantined_at" in item for item in saved)

    def test_unreadable_sidecar_is_not_overwritten(self, tmp_path):
        path = tmp_path / "dictdata.json"
        sidecar = quarantine_path(path)
        sidecar.write_text("{broken", encoding="utf-8")

        written = quarantine_records(path, [RejectedRecord(0, {"entry": "a"}, ["bad"])])

        assert sidecar.read_text(encoding="utf-8") == "{broken"
        assert written != sidecar
        assert written.name.startswith("dictdata.json.rejected.")
        assert json.loads(written.read_text(encoding="utf-8"))[0]["record"] == {"entry": "a"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
