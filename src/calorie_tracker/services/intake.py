"""Per-profile, per-day intake ledgers."""

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from uuid import uuid4

from calorie_tracker.domain.models import FoodItem, IntakeEntry
from calorie_tracker.services.storage import PersistentStore, Unsubscribe, intake_key

MIN_UNITS = 1


def total_kcal(entries: Iterable[IntakeEntry]) -> float:
    """Sum of kcal_per_unit * units over the entries."""
    return sum(entry.kcal_per_unit * entry.units for entry in entries)


@dataclass
class IntakeLedger:
    """Ordered intake entries for one profile on one day.

    Every mutation reads the stored ledger, applies the change and writes the
    whole list back. New rows are appended, so entries are oldest first.
    """

    store: PersistentStore
    profile_id: str
    day: date

    @property
    def key(self) -> str:
        return intake_key(self.profile_id, self.day)

    def entries(self) -> list[IntakeEntry]:
        return self.store.read(self.key, list[IntakeEntry], [])

    def total(self) -> float:
        return total_kcal(self.entries())

    def subscribe(self, callback: Callable[[list[IntakeEntry]], None]) -> Unsubscribe:
        return self.store.subscribe(self.key, list[IntakeEntry], [], callback)

    def add_catalog_entry(self, food: FoodItem, units: int = 1) -> list[IntakeEntry]:
        """Add servings of a catalog food, merging with an existing row."""
        units = max(int(units), MIN_UNITS)
        entries = self.entries()
        for index, entry in enumerate(entries):
            if entry.food_id == food.id:
                entries[index] = entry.model_copy(update={"units": entry.units + units})
                return self._save(entries)
        entries.append(
            IntakeEntry(
                id=uuid4().hex,
                date_iso=self.day.isoformat(),
                food_id=food.id,
                kcal_per_unit=food.kcal_per_serving,
                units=units,
                timestamp=_now_ms(),
            )
        )
        return self._save(entries)

    def add_manual_entry(
        self, name: str, kcal_per_unit: float, units: int = 1
    ) -> list[IntakeEntry]:
        """Add a free-text entry; never merged with other rows."""
        label = name.strip()
        if not label:
            raise ValueError("Manual entries need a name")
        if kcal_per_unit <= 0:
            raise ValueError("Manual entries need a positive kcal value")
        entries = self.entries()
        entries.append(
            IntakeEntry(
                id=uuid4().hex,
                date_iso=self.day.isoformat(),
                custom_name=label,
                kcal_per_unit=kcal_per_unit,
                units=max(int(units), MIN_UNITS),
                timestamp=_now_ms(),
            )
        )
        return self._save(entries)

    def set_units(self, entry_id: str, units: int) -> list[IntakeEntry]:
        """Set an entry's units, floored at 1."""
        entries = self.entries()
        for index, entry in enumerate(entries):
            if entry.id == entry_id:
                entries[index] = entry.model_copy(
                    update={"units": max(int(units), MIN_UNITS)}
                )
                return self._save(entries)
        return entries

    def increment(self, entry_id: str) -> list[IntakeEntry]:
        entry = self._find(entry_id)
        if entry is None:
            return self.entries()
        return self.set_units(entry_id, entry.units + 1)

    def decrement(self, entry_id: str) -> list[IntakeEntry]:
        entry = self._find(entry_id)
        if entry is None:
            return self.entries()
        return self.set_units(entry_id, entry.units - 1)

    def remove_entry(self, entry_id: str) -> list[IntakeEntry]:
        entries = self.entries()
        remaining = [entry for entry in entries if entry.id != entry_id]
        if len(remaining) == len(entries):
            return entries
        return self._save(remaining)

    def reset_day(self) -> None:
        """Drop every entry for this day."""
        self.store.remove(self.key)

    def _find(self, entry_id: str) -> IntakeEntry | None:
        return next((e for e in self.entries() if e.id == entry_id), None)

    def _save(self, entries: list[IntakeEntry]) -> list[IntakeEntry]:
        self.store.write(self.key, list[IntakeEntry], entries)
        return entries


def _now_ms() -> int:
    return int(time.time() * 1000)
