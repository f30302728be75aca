"""Tests for the persistent key-value store."""

from calorie_tracker.adapters.memory_backend import InMemoryBackend
from calorie_tracker.domain.models import IntakeEntry, Profile
from calorie_tracker.services.storage import (
    PersistentStore,
    StorageEventBus,
    custom_foods_key,
    intake_key,
)
from tests.conftest import TODAY, FailingBackend


def test_read_missing_key_returns_default(store: PersistentStore) -> None:
    assert store.read("profiles", list[Profile], []) == []


def test_default_is_copied(store: PersistentStore) -> None:
    default: list[Profile] = []
    value = store.read("profiles", list[Profile], default)
    value.append(Profile(id="x", name="x", password="pass"))

    assert default == []


def test_write_then_read_uses_camel_case(
    store: PersistentStore, backend: FailingBackend
) -> None:
    entry = IntakeEntry(
        id="e1",
        date_iso="2024-03-15",
        food_id="fruit-001",
        kcal_per_unit=60,
        units=2,
        timestamp=1,
    )

    assert store.write("intake_p_2024-03-15", list[IntakeEntry], [entry])

    raw = backend.values["intake_p_2024-03-15"]
    assert '"dateISO":"2024-03-15"' in raw
    assert '"kcalPerUnit":60.0' in raw
    assert store.read("intake_p_2024-03-15", list[IntakeEntry], []) == [entry]


def test_corrupt_value_falls_back_to_default(
    store: PersistentStore, backend: FailingBackend
) -> None:
    backend.values["profiles"] = "{not json"
    backend.values["activeProfileId"] = "[1, 2]"

    assert store.read("profiles", list[Profile], []) == []
    assert store.read("activeProfileId", str | None, None) is None


def test_read_failure_falls_back_to_default(
    store: PersistentStore, backend: FailingBackend
) -> None:
    backend.fail_reads.add("profiles")

    assert store.read("profiles", list[Profile], []) == []


def test_failed_write_is_dropped(
    store: PersistentStore, backend: FailingBackend
) -> None:
    backend.fail_writes.add("profiles")
    notified: list[object] = []
    store.subscribe("profiles", list[Profile], [], notified.append)

    assert not store.write("profiles", list[Profile], [])
    assert "profiles" not in backend.values
    assert notified == []


def test_keys_filters_by_prefix(store: PersistentStore) -> None:
    store.write(intake_key("p1", TODAY), list[IntakeEntry], [])
    store.write(intake_key("p2", TODAY), list[IntakeEntry], [])
    store.write(custom_foods_key("p1"), list, [])

    assert store.keys("intake_p1_") == ["intake_p1_2024-03-15"]


def test_key_listing_failure_returns_empty(
    store: PersistentStore, backend: FailingBackend
) -> None:
    backend.fail_keys = True

    assert store.keys() == []


def test_subscribers_receive_new_value_and_default_on_delete(
    store: PersistentStore,
) -> None:
    received: list[str | None] = []
    unsubscribe = store.subscribe("activeProfileId", str | None, None, received.append)

    store.write("activeProfileId", str | None, "abc")
    store.remove("activeProfileId")
    unsubscribe()
    store.write("activeProfileId", str | None, "ignored")

    assert received == ["abc", None]


def test_prefix_subscription(store: PersistentStore) -> None:
    changed: list[str] = []
    store.subscribe_prefix("intake_p1_", changed.append)

    store.write(intake_key("p1", TODAY), list[IntakeEntry], [])
    store.write(intake_key("p2", TODAY), list[IntakeEntry], [])

    assert changed == ["intake_p1_2024-03-15"]


def test_bus_relays_writes_to_peer_stores() -> None:
    backend = InMemoryBackend()
    bus = StorageEventBus()
    first = PersistentStore(backend, bus=bus)
    second = PersistentStore(backend, bus=bus)
    seen_by_second: list[str | None] = []
    second.subscribe("activeProfileId", str | None, None, seen_by_second.append)

    first.write("activeProfileId", str | None, "abc")
    first.remove("activeProfileId")

    assert seen_by_second == ["abc", None]


def test_external_change_with_corrupt_value_yields_default(
    store: PersistentStore,
) -> None:
    received: list[list[Profile]] = []
    store.subscribe("profiles", list[Profile], [], received.append)

    store.receive_external("profiles", "garbage")

    assert received == [[]]


def test_bound_value(store: PersistentStore) -> None:
    value = store.bind("activeProfileId", str | None, None)

    value.set("abc")
    assert value.get() == "abc"
    value.delete()
    assert value.get() is None


def test_list_values_drop_only_bad_records(
    store: PersistentStore, backend: FailingBackend
) -> None:
    backend.values["intake_p_2024-03-15"] = (
        '[{"id": "e1", "dateISO": "2024-03-15", "kcalPerUnit": 100, '
        '"units": 2, "timestamp": 1}, {"id": "e2", "units": 0}]'
    )

    entries = store.read("intake_p_2024-03-15", list[IntakeEntry], [])

    assert [entry.id for entry in entries] == ["e1"]
    assert entries[0].kcal == 200
