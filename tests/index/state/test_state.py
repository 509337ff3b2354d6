"""Tests for key-value storage and the fingerprinted index cache."""

from pathlib import Path

from axtrace.index._internal.state import (
    CACHE_KEY,
    JsonFileStore,
    MemoryStore,
    compute_fingerprint,
    load_cached_indexes,
    project_key,
    save_cached_indexes,
)
from axtrace.index.models import IdentifierEntry, ModuleEntry, ModuleIndex, SourceIndexes


def _indexes() -> SourceIndexes:
    modules = ModuleIndex(
        modules={"App": ModuleEntry(name="App", sources=("App/Home.swift",))},
        strategy="directory_scan",
    )
    entry = IdentifierEntry(
        literal="home.create",
        file="App/Home.swift",
        line=7,
        context='.accessibilityIdentifier("home.create")',
        kind="exact",
        origin="accessibility_identifier",
        owner="HomeView",
    )
    return SourceIndexes(modules=modules, identifiers={"home.create": [entry]})


class TestJsonFileStore:
    def test_round_trip(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path / "state")

        store.set("weights", {"weights": {"class_name": 0.75}})

        assert store.get("weights") == {"weights": {"class_name": 0.75}}
        assert store.path_for("weights").is_file()
        assert list((tmp_path / "state").glob("*.tmp")) == []

    def test_missing_and_corrupt_read_as_none(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path)
        store.path_for("broken").write_text("{not json")

        assert store.get("absent") is None
        assert store.get("broken") is None


class TestMemoryStore:
    def test_reads_return_copies(self) -> None:
        store = MemoryStore()
        store.set("k", {"a": [1]})

        value = store.get("k")
        value["a"].append(2)

        assert store.get("k") == {"a": [1]}
        assert "k" in store

    def test_corrupt_raw_value(self) -> None:
        store = MemoryStore()
        store.set_raw("k", "{oops")

        assert store.get("k") is None


class TestFingerprint:
    def test_order_independent(self) -> None:
        a = compute_fingerprint({"a.swift": "1", "b.swift": "2"}, "key")
        b = compute_fingerprint({"b.swift": "2", "a.swift": "1"}, "key")

        assert a == b

    def test_sensitive_to_content_and_project(self) -> None:
        base = compute_fingerprint({"a.swift": "1"}, "key")

        assert compute_fingerprint({"a.swift": "2"}, "key") != base
        assert compute_fingerprint({"a.swift": "1"}, "other") != base

    def test_project_key_uses_resolved_root(self, tmp_path: Path) -> None:
        assert project_key(tmp_path / "x" / "..") == project_key(tmp_path)


class TestIndexCache:
    def test_hit_restores_indexes(self) -> None:
        store = MemoryStore()
        save_cached_indexes(store, "fp", "key", _indexes())

        cached = load_cached_indexes(store, "fp")

        assert cached is not None
        (entry,) = cached.identifiers["home.create"]
        assert entry.owner == "HomeView"
        assert cached.modules.module_for_file("App/Home.swift") == "App"

    def test_fingerprint_mismatch_is_miss(self) -> None:
        store = MemoryStore()
        save_cached_indexes(store, "fp", "key", _indexes())

        assert load_cached_indexes(store, "other") is None

    def test_corrupt_payload_is_miss(self) -> None:
        store = MemoryStore()
        store.set_raw(CACHE_KEY, "{truncated")
        assert load_cached_indexes(store, "fp") is None

        store.set(CACHE_KEY, {"version": 1, "fingerprint": "fp", "data": {"modules": {}}})
        assert load_cached_indexes(store, "fp") is None
