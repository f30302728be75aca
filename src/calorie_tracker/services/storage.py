"""Typed, observable wrapper over a string-keyed key-value backend."""

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import (
    Any,
    Generic,
    Protocol,
    TypeVar,
    get_args,
    get_origin,
    runtime_checkable,
)

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]

PROFILES_KEY = "profiles"
ACTIVE_PROFILE_KEY = "activeProfileId"
FOODS_CACHE_KEY = "foodsCache"


def intake_prefix(profile_id: str) -> str:
    """Return the key prefix shared by all of a profile's ledgers."""
    return f"intake_{profile_id}_"


def intake_key(profile_id: str, day: date) -> str:
    """Return the ledger key for a profile and calendar day."""
    return f"{intake_prefix(profile_id)}{day.isoformat()}"


def custom_foods_key(profile_id: str) -> str:
    """Return the key holding a profile's custom foods."""
    return f"customFoods_{profile_id}"


class StorageError(Exception):
    """Raised by backends when the underlying store is unavailable."""


class KeyValueBackend(Protocol):
    """Durable string-keyed storage."""

    def get(self, key: str) -> str | None:
        """Return the raw value for a key, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a raw value."""

    def delete(self, key: str) -> None:
        """Remove a key if present."""

    def keys(self) -> list[str]:
        """Return every stored key."""


@runtime_checkable
class ChangeTrackingBackend(KeyValueBackend, Protocol):
    """Backend that can report writes made by other processes."""

    def poll_changes(self) -> dict[str, str | None]:
        """Return keys changed by other writers since the last poll.

        Deleted keys map to None.
        """


@lru_cache(maxsize=64)
def _adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


@dataclass
class _KeySubscription:
    type_: Any
    default: Any
    callback: Callable[[Any], None]


@dataclass
class StorageEventBus:
    """Relays writes between store instances sharing one backend."""

    stores: list["PersistentStore"] = field(default_factory=list)

    def register(self, store: "PersistentStore") -> None:
        if store not in self.stores:
            self.stores.append(store)

    def publish(self, origin: "PersistentStore", key: str, raw: str | None) -> None:
        for store in list(self.stores):
            if store is not origin:
                store.receive_external(key, raw)


@dataclass(eq=False)
class PersistentStore:
    """Reads and writes validated values and notifies subscribers of changes.

    Backend failures never escape: reads fall back to the supplied default and
    failed writes are logged and dropped. Values that are not valid JSON or do
    not match the expected schema are treated as absent. In a list, only the
    records that fail validation are dropped.
    """

    backend: KeyValueBackend
    bus: StorageEventBus | None = None
    _subscriptions: dict[str, list[_KeySubscription]] = field(
        default_factory=dict, init=False
    )
    _prefix_subscriptions: list[tuple[str, Callable[[str], None]]] = field(
        default_factory=list, init=False
    )

    def __post_init__(self) -> None:
        if self.bus is not None:
            self.bus.register(self)

    def read(self, key: str, type_: Any, default: T) -> T:
        """Return the stored value for a key, or a copy of the default."""
        try:
            raw = self.backend.get(key)
        except StorageError:
            logger.warning("Failed to read key %s", key, exc_info=True)
            return copy.deepcopy(default)
        return self._parse(key, raw, type_, default)

    def write(self, key: str, type_: Any, value: object) -> bool:
        """Persist a value; return False when the backend rejected it."""
        raw = _adapter(type_).dump_json(value, by_alias=True).decode()
        try:
            self.backend.set(key, raw)
        except StorageError:
            logger.warning("Failed to write key %s", key, exc_info=True)
            return False
        self._changed(key, raw)
        return True

    def remove(self, key: str) -> bool:
        """Delete a key; return False when the backend failed."""
        try:
            self.backend.delete(key)
        except StorageError:
            logger.warning("Failed to remove key %s", key, exc_info=True)
            return False
        self._changed(key, None)
        return True

    def keys(self, prefix: str = "") -> list[str]:
        """Return stored keys starting with the prefix."""
        try:
            keys = self.backend.keys()
        except StorageError:
            logger.warning("Failed to list keys", exc_info=True)
            return []
        return sorted(key for key in keys if key.startswith(prefix))

    def bind(self, key: str, type_: Any, default: T) -> "StoredValue[T]":
        """Return a handle bound to one key."""
        return StoredValue(self, key, type_, default)

    def subscribe(
        self, key: str, type_: Any, default: T, callback: Callable[[T], None]
    ) -> Unsubscribe:
        """Call back with the new value (or default when deleted) on change."""
        subscription = _KeySubscription(type_=type_, default=default, callback=callback)
        self._subscriptions.setdefault(key, []).append(subscription)

        def unsubscribe() -> None:
            listeners = self._subscriptions.get(key, [])
            if subscription in listeners:
                listeners.remove(subscription)

        return unsubscribe

    def subscribe_prefix(
        self, prefix: str, callback: Callable[[str], None]
    ) -> Unsubscribe:
        """Call back with the changed key for any key under the prefix."""
        entry = (prefix, callback)
        self._prefix_subscriptions.append(entry)

        def unsubscribe() -> None:
            if entry in self._prefix_subscriptions:
                self._prefix_subscriptions.remove(entry)

        return unsubscribe

    def receive_external(self, key: str, raw: str | None) -> None:
        """Dispatch a change made outside this store instance."""
        self._dispatch(key, raw)

    def poll_external(self) -> list[str]:
        """Dispatch writes the backend saw from other processes.

        Peer stores on the event bus are notified as well. Returns the changed
        keys.
        """
        if not isinstance(self.backend, ChangeTrackingBackend):
            return []
        try:
            changes = self.backend.poll_changes()
        except StorageError:
            logger.warning("Failed to poll for external changes", exc_info=True)
            return []
        for key, raw in changes.items():
            self._changed(key, raw)
        return list(changes)

    def _changed(self, key: str, raw: str | None) -> None:
        self._dispatch(key, raw)
        if self.bus is not None:
            self.bus.publish(self, key, raw)

    def _dispatch(self, key: str, raw: str | None) -> None:
        for subscription in list(self._subscriptions.get(key, [])):
            value = self._parse(key, raw, subscription.type_, subscription.default)
            subscription.callback(value)
        for prefix, callback in list(self._prefix_subscriptions):
            if key.startswith(prefix):
                callback(key)

    @staticmethod
    def _parse(key: str, raw: str | None, type_: Any, default: T) -> T:
        if not raw:
            return copy.deepcopy(default)
        try:
            return _adapter(type_).validate_json(raw)
        except ValidationError:
            pass
        if get_origin(type_) is list:
            salvaged = _salvage_items(key, raw, get_args(type_)[0])
            if salvaged is not None:
                return salvaged  # type: ignore[return-value]
        logger.warning("Discarding unreadable value for key %s", key)
        return copy.deepcopy(default)


def _salvage_items(key: str, raw: str, item_type: Any) -> list[Any] | None:
    """Validate a JSON array item by item, dropping only the bad records."""
    try:
        items = _adapter(list[Any]).validate_json(raw)
    except ValidationError:
        return None
    valid: list[Any] = []
    for item in items:
        try:
            valid.append(_adapter(item_type).validate_python(item))
        except ValidationError:
            continue
    logger.warning(
        "Dropped %d unreadable records from key %s", len(items) - len(valid), key
    )
    return valid


@dataclass
class StoredValue(Generic[T]):
    """A single key of a store with its type and default."""

    store: PersistentStore
    key: str
    type_: Any
    default: T

    def get(self) -> T:
        return self.store.read(self.key, self.type_, self.default)

    def set(self, value: T) -> bool:
        return self.store.write(self.key, self.type_, value)

    def delete(self) -> bool:
        return self.store.remove(self.key)

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        return self.store.subscribe(self.key, self.type_, self.default, callback)
