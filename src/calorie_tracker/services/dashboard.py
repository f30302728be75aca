"""Live daily state for the active profile."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from calorie_tracker.domain.progress import DashboardSnapshot
from calorie_tracker.services.intake import IntakeLedger, total_kcal
from calorie_tracker.services.profiles import ProfileDirectory
from calorie_tracker.services.storage import PersistentStore, Unsubscribe
from calorie_tracker.services.targets import (
    classify,
    progress_message,
    resolve_target,
)


@dataclass
class DashboardService:
    """Combines the active profile, its target and a day's ledger."""

    store: PersistentStore
    directory: ProfileDirectory
    today: Callable[[], date] = field(default=date.today)

    def ledger(self, day: date | None = None) -> IntakeLedger | None:
        """Return the active profile's ledger, gated on completed registration."""
        profile = self.directory.active_profile()
        if profile is None or not profile.has_energy_data:
            return None
        return IntakeLedger(self.store, profile.id, day or self.today())

    def snapshot(self, day: date | None = None) -> DashboardSnapshot | None:
        profile = self.directory.active_profile()
        if profile is None:
            return None
        resolved_day = day or self.today()
        target = resolve_target(profile)
        entries = (
            IntakeLedger(self.store, profile.id, resolved_day).entries()
            if profile.has_energy_data
            else []
        )
        consumed = total_kcal(entries)
        return DashboardSnapshot(
            profile=profile,
            day=resolved_day,
            entries=entries,
            consumed=consumed,
            target=target,
            progress=classify(consumed, target) if target > 0 else None,
            message=progress_message(consumed, target),
        )

    def watch(
        self, callback: Callable[[DashboardSnapshot | None], None]
    ) -> Unsubscribe:
        """Recompute the snapshot when the profile, session or ledger changes.

        The ledger subscription follows the active profile and the current day.
        """
        ledger_unsubscribe: Unsubscribe | None = None

        def publish(*_args: object) -> None:
            callback(self.snapshot())

        def follow_ledger(*_args: object) -> None:
            nonlocal ledger_unsubscribe
            if ledger_unsubscribe is not None:
                ledger_unsubscribe()
                ledger_unsubscribe = None
            ledger = self.ledger()
            if ledger is not None:
                ledger_unsubscribe = ledger.subscribe(publish)

        def on_profile_change(*_args: object) -> None:
            follow_ledger()
            publish()

        follow_ledger()
        unsubscribers = [
            self.directory.subscribe(on_profile_change),
            self.directory.session.subscribe(on_profile_change),
        ]

        def unsubscribe() -> None:
            for stop in unsubscribers:
                stop()
            if ledger_unsubscribe is not None:
                ledger_unsubscribe()

        return unsubscribe
