"""Tests for key-value backend implementations."""

from dataclasses import dataclass, field

import pytest

from calorie_tracker.adapters.json_file_backend import JsonFileBackend
from calorie_tracker.adapters.supabase_kv_backend import SupabaseKeyValueBackend
from calorie_tracker.services.storage import PersistentStore, StorageError


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    rows: dict[str, str] = field(default_factory=dict)
    broken: bool = False
    _action: str = "select"
    _payload: dict[str, str] | None = None
    _filters: list[tuple[str, object]] = field(default_factory=list)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        self._filters = []
        return self

    def upsert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self._payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        self._filters = []
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        if self.broken:
            raise ConnectionError("supabase unavailable")
        keys = [value for column, value in self._filters if column == "key"]
        if self._action == "upsert" and self._payload is not None:
            self.rows[self._payload["key"]] = self._payload["value"]
            return FakeResponse(data=[self._payload])
        if self._action == "delete":
            for key in keys:
                self.rows.pop(str(key), None)
            return FakeResponse(data=[])
        selected = keys or list(self.rows)
        return FakeResponse(
            data=[
                {"key": key, "value": self.rows[key]}
                for key in selected
                if key in self.rows
            ]
        )


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_json_file_backend_roundtrip(tmp_path) -> None:
    path = tmp_path / "nested" / "store.json"
    backend = JsonFileBackend(path)

    assert backend.get("profiles") is None
    backend.set("profiles", "[]")
    backend.set("activeProfileId", '"abc"')
    backend.delete("activeProfileId")

    reopened = JsonFileBackend(path)
    assert reopened.get("profiles") == "[]"
    assert reopened.keys() == ["profiles"]


def test_json_file_backend_sees_other_writers(tmp_path) -> None:
    path = tmp_path / "store.json"
    first = JsonFileBackend(path)
    second = JsonFileBackend(path)

    first.set("k", "1")

    assert second.get("k") == "1"


def test_corrupt_json_file_raises_storage_error(tmp_path) -> None:
    path = tmp_path / "store.json"
    path.write_text("not json", encoding="utf-8")
    backend = JsonFileBackend(path)

    with pytest.raises(StorageError):
        backend.get("profiles")
    assert PersistentStore(backend).read("profiles", list, []) == []


def test_supabase_backend_roundtrip() -> None:
    client = FakeSupabaseClient()
    backend = SupabaseKeyValueBackend(client)

    backend.set("profiles", "[]")
    backend.set("intake_p1_2024-03-15", "[]")
    backend.delete("profiles")

    assert backend.get("profiles") is None
    assert backend.get("intake_p1_2024-03-15") == "[]"
    assert backend.keys() == ["intake_p1_2024-03-15"]
    assert "kv_store" in client.tables


def test_supabase_failures_become_storage_errors() -> None:
    client = FakeSupabaseClient()
    client.table("kv_store").broken = True
    backend = SupabaseKeyValueBackend(client)

    with pytest.raises(StorageError):
        backend.get("profiles")
    with pytest.raises(StorageError):
        backend.set("profiles", "[]")
    assert not PersistentStore(backend).write("profiles", list, [])


def test_json_file_backend_reports_other_writers(tmp_path) -> None:
    path = tmp_path / "store.json"
    watcher = JsonFileBackend(path)
    writer = JsonFileBackend(path)

    watcher.set("own", "1")
    writer.set("intake_p1_2024-03-15", "[]")
    writer.set("profiles", "[]")
    changes = watcher.poll_changes()
    writer.delete("profiles")

    assert changes == {"intake_p1_2024-03-15": "[]", "profiles": "[]"}
    assert watcher.poll_changes() == {"profiles": None}
    assert watcher.poll_changes() == {}


def test_store_dispatches_changes_from_other_processes(tmp_path) -> None:
    path = tmp_path / "store.json"
    store = PersistentStore(JsonFileBackend(path))
    other_process = PersistentStore(JsonFileBackend(path))
    received: list[list[str]] = []
    changed_keys: list[str] = []
    store.subscribe("customFoods_p1", list[str], [], received.append)
    store.subscribe_prefix("intake_p1_", changed_keys.append)

    other_process.write("customFoods_p1", list[str], ["soup"])
    other_process.write("intake_p1_2024-03-15", list[str], [])

    assert store.poll_external() == ["customFoods_p1", "intake_p1_2024-03-15"]
    assert received == [["soup"]]
    assert changed_keys == ["intake_p1_2024-03-15"]
    assert store.poll_external() == []


def test_backends_without_change_tracking_poll_nothing() -> None:
    client = FakeSupabaseClient()
    store = PersistentStore(SupabaseKeyValueBackend(client))

    assert store.poll_external() == []
