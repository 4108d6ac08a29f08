"""
Tests for the JSON artifact store.
"""

import os
from datetime import datetime

from beacon_probe.data.artifact_store import (
    ArtifactStore, dimension_slug, failure_marker, sanitize,
)

from conftest import read_artifact


class TestArtifactStore:

    def test_envelope_round_trip(self, store):
        response = {"routes": [{"routeId": 7, "name": "Circle 環"}], "count": 1, "ok": True}
        store.write_json("overview.json", response)

        document = read_artifact(store, "overview.json")
        assert set(document) == {"timestamp", "data"}
        assert isinstance(datetime.fromisoformat(document["timestamp"]), datetime)
        assert document["data"] == response

    def test_absent_response_is_null(self, store):
        store.write_json("force_update.json", None)
        assert read_artifact(store, "force_update.json")["data"] is None

    def test_subdir_is_created(self, store):
        path = store.write_json("page_001.json", {"items": []}, subdir="mtr_nodes/minecraft_overworld")
        assert os.path.isfile(path)
        assert read_artifact(store, "page_001.json", subdir="mtr_nodes/minecraft_overworld")["data"] == {"items": []}

    def test_prepare_empties_existing_directory(self, tmp_path):
        base = tmp_path / "out"
        (base / "old").mkdir(parents=True)
        (base / "old" / "a.json").write_text("{}")
        (base / "b.json").write_text("{}")

        ArtifactStore(str(base)).prepare()

        assert base.is_dir()
        assert list(base.iterdir()) == []

    def test_prepare_creates_missing_directory(self, tmp_path):
        base = tmp_path / "missing" / "out"
        ArtifactStore(str(base)).prepare()
        assert base.is_dir()

    def test_written_counter(self, store):
        store.write_json("a.json", 1)
        store.write_failure("b.json", RuntimeError("boom"))
        assert store.written == 2
        assert read_artifact(store, "b.json")["data"] == {"success": False, "error": "boom"}


class TestNaming:

    def test_sanitize(self):
        assert sanitize("Steve Jobs/../x") == "Steve_Jobs_.._x"
        assert sanitize("069a79f4-44e9-4726-a5be-fca90e38aaf5") == "069a79f4-44e9-4726-a5be-fca90e38aaf5"
        assert sanitize(None) == ""

    def test_dimension_slug(self):
        assert dimension_slug("minecraft:overworld") == "minecraft_overworld"
        assert dimension_slug("") == "unknown"

    def test_failure_marker_without_message(self):
        assert failure_marker(TimeoutError()) == {"success": False, "error": "TimeoutError"}
