"""
Tests for the local key-value stores.
"""

from local_store import InMemoryStore, JsonFileStore


class TestInMemoryStore:
    def test_get_set_remove(self):
        store = InMemoryStore({"theme": "dark"})
        assert store.get("theme") == "dark"
        store.set("theme", "light")
        assert store.get("theme") == "light"
        store.remove("theme")
        store.remove("theme")
        assert store.get("theme") is None


class TestJsonFileStore:
    def test_persists_between_instances(self, tmp_path):
        path = tmp_path / "state" / "local.json"
        JsonFileStore(path).set("userMatchCount", "3")

        assert JsonFileStore(path).get("userMatchCount") == "3"

    def test_remove_persists(self, tmp_path):
        path = tmp_path / "local.json"
        store = JsonFileStore(path)
        store.set("a", "1")
        store.set("b", "2")
        store.remove("a")

        reloaded = JsonFileStore(path)
        assert reloaded.get("a") is None
        assert reloaded.get("b") == "2"

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "local.json"
        path.write_text("not json", encoding="utf-8")
        assert JsonFileStore(path).get("theme") is None

        path.write_text("[1, 2]", encoding="utf-8")
        assert JsonFileStore(path).get("theme") is None
