"""History windows and calendar lookups over stored ledgers."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta

from calorie_tracker.domain.progress import DayDetail, HistoryPoint, HistorySummary
from calorie_tracker.services.intake import IntakeLedger, total_kcal
from calorie_tracker.services.storage import PersistentStore, Unsubscribe, intake_prefix
from calorie_tracker.services.targets import classify, is_over, is_under

DEFAULT_WINDOW_DAYS = 5


@dataclass
class HistoryAggregator:
    """Re-reads day ledgers to build sliding windows of daily totals."""

    store: PersistentStore
    today: Callable[[], date] = field(default=date.today)

    def build_window(
        self,
        profile_id: str,
        tdee: int,
        window_days: int = DEFAULT_WINDOW_DAYS,
        end: date | None = None,
    ) -> list[HistoryPoint]:
        """Return one point per day, oldest first, ending today (inclusive)."""
        last_day = end or self.today()
        points: list[HistoryPoint] = []
        for offset in range(window_days - 1, -1, -1):
            day = last_day - timedelta(days=offset)
            ledger = IntakeLedger(self.store, profile_id, day)
            points.append(HistoryPoint(day=day, kcal=ledger.total(), goal=tdee))
        return points

    def summarize(self, points: list[HistoryPoint]) -> HistorySummary:
        if not points:
            return HistorySummary(
                points=[], average=0.0, days_under=0, days_over=0, has_data=False
            )
        return HistorySummary(
            points=points,
            average=sum(point.kcal for point in points) / len(points),
            days_under=sum(1 for point in points if is_under(point.kcal, point.goal)),
            days_over=sum(1 for point in points if is_over(point.kcal, point.goal)),
            has_data=any(point.kcal > 0 for point in points),
        )

    def summary(
        self, profile_id: str, tdee: int, window_days: int = DEFAULT_WINDOW_DAYS
    ) -> HistorySummary:
        return self.summarize(self.build_window(profile_id, tdee, window_days))

    def ledger_for_day(self, profile_id: str, day: date) -> IntakeLedger | None:
        """Return an editable ledger for a past or current day."""
        if day > self.today():
            return None
        return IntakeLedger(self.store, profile_id, day)

    def read_day(self, profile_id: str, day: date, goal: int = 0) -> DayDetail | None:
        """Look up a single day's ledger; future days are not available."""
        ledger = self.ledger_for_day(profile_id, day)
        if ledger is None:
            return None
        entries = ledger.entries()
        total = total_kcal(entries)
        return DayDetail(
            day=day,
            entries=entries,
            total_kcal=total,
            progress=classify(total, goal) if goal > 0 else None,
        )

    def watch(self, profile_id: str, callback: Callable[[str], None]) -> Unsubscribe:
        """Call back with the changed key whenever any of the profile's days change."""
        return self.store.subscribe_prefix(intake_prefix(profile_id), callback)
