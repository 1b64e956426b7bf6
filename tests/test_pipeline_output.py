"""Tests for manifest output."""

import io
import json

import pytest

from etlcdb.errors import EncodeError
from etlcdb.pipeline import JsonArrayWriter, StagingStore, write_manifest


class TestJsonArrayWriter:
    """Tests for JsonArrayWriter."""

    def test_empty_array(self):
        buf = io.StringIO()
        with JsonArrayWriter(buf):
            pass
        assert json.loads(buf.getvalue()) == []

    def test_single_element_has_no_separator(self):
        buf = io.StringIO()
        with JsonArrayWriter(buf) as arr:
            arr.write({"a": 1})
        assert buf.getvalue() == '[\n{"a": 1}\n]\n'

    def test_elements_are_separated(self):
        buf = io.StringIO()
        with JsonArrayWriter(buf) as arr:
            for i in range(3):
                arr.write_raw(json.dumps({"i": i}))

        assert json.loads(buf.getvalue()) == [{"i": 0}, {"i": 1}, {"i": 2}]
        assert arr.count == 3
        assert buf.getvalue().count(",\n") == 2

    def test_non_ascii_is_kept(self):
        buf = io.StringIO()
        with JsonArrayWriter(buf) as arr:
            arr.write({"character": "亜"})
        assert "亜" in buf.getvalue()

    def test_close_is_idempotent(self):
        buf = io.StringIO()
        arr = JsonArrayWriter(buf)
        arr.write(1)
        arr.close()
        arr.close()
        assert json.loads(buf.getvalue()) == [1]


class TestWriteManifest:
    """Tests for write_manifest()."""

    def test_writes_entries_in_key_order(self, tmp_path):
        staging_dir = tmp_path / ".staging"
        store = StagingStore.open(staging_dir)
        store.put_batch([("b.png", '{"image_name": "b.png"}'), ("a.png", '{"image_name": "a.png"}')])

        manifest = tmp_path / "etl9g.json"
        count = write_manifest(store, manifest)

        assert count == 2
        data = json.loads(manifest.read_text(encoding="utf-8"))
        assert [d["image_name"] for d in data] == ["a.png", "b.png"]

    def test_discards_store_after_writing(self, tmp_path):
        staging_dir = tmp_path / ".staging"
        store = StagingStore.open(staging_dir)
        store.put_batch([("k", "{}")])

        write_manifest(store, tmp_path / "out.json")

        assert not staging_dir.exists()

    def test_unwritable_manifest(self, tmp_path):
        store = StagingStore.in_memory()
        store.put_batch([("k", "{}")])
        blocker = tmp_path / "file"
        blocker.write_text("x")

        with pytest.raises(EncodeError):
            write_manifest(store, blocker / "out.json")
        store.close()
