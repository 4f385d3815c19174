"""Tests for the local key-value stores."""

import json

from nutri_plan.store import KEY_PREFIX, JsonFileStore, MemoryStore


class TestMemoryStore:
    def test_default_when_missing(self):
        assert MemoryStore().get("nope", {"x": 1}) == {"x": 1}

    def test_values_are_copied(self):
        store = MemoryStore()
        value = {"a": True}
        store.set("k", value)
        value["a"] = False
        got = store.get("k")
        got["b"] = True
        assert store.get("k") == {"a": True}

    def test_subscribe_and_unsubscribe(self):
        store = MemoryStore()
        seen = []
        unsubscribe = store.subscribe("k", seen.append)
        store.set("k", 1)
        store.set("other", 2)
        unsubscribe()
        store.set("k", 3)
        assert seen == [1]


class TestJsonFileStore:
    def test_round_trip_with_prefix(self, tmp_path):
        path = tmp_path / "store.json"
        store = JsonFileStore(path)
        store.set("prepDone::p1", {"ing:1": True})
        assert store.get("prepDone::p1") == {"ing:1": True}
        on_disk = json.loads(path.read_text())
        assert on_disk == {KEY_PREFIX + "prepDone::p1": {"ing:1": True}}

    def test_sees_other_writers(self, tmp_path):
        path = tmp_path / "store.json"
        a = JsonFileStore(path)
        b = JsonFileStore(path)
        a.set("k", 1)
        assert b.get("k") == 1
        b.set("j", 2)
        assert a.get("k") == 1
        assert a.get("j") == 2

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonFileStore(tmp_path / "absent.json").get("k", "default") == "default"

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json")
        store = JsonFileStore(path)
        assert store.get("k") is None
        store.set("k", 5)
        assert store.get("k") == 5

    def test_creates_parent_dir(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "store.json"
        JsonFileStore(path).set("k", [1, 2])
        assert path.exists()

    def test_notifies_subscribers(self, tmp_path):
        store = JsonFileStore(tmp_path / "store.json")
        seen = []
        store.subscribe("k", seen.append)
        store.set("k", {"a": 1})
        assert seen == [{"a": 1}]
