"""Domain models for daily progress and history."""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from calorie_tracker.domain.models import FoodItem, IntakeEntry, Profile


class ProgressState(StrEnum):
    """Three-way state used for ring colour and status badges."""

    OK = "ok"
    NEAR = "near"
    OVER = "over"


class ProgressBand(StrEnum):
    """Finer banding used for user-facing phrasing."""

    NOT_STARTED = "not_started"
    STARTED = "started"
    QUARTER = "quarter"
    HALF = "half"
    THREE_QUARTERS = "three_quarters"
    ALMOST = "almost"
    REACHED = "reached"
    EXCEEDED = "exceeded"


@dataclass(frozen=True)
class EnergyResult:
    """Basal and total daily energy expenditure in kcal."""

    bmr: int
    tdee: int


@dataclass(frozen=True)
class Progress:
    """Consumption measured against a daily target."""

    percentage: float
    remaining: float
    state: ProgressState


@dataclass(frozen=True)
class HistoryPoint:
    """Total consumption for one day of a history window."""

    day: date
    kcal: float
    goal: int


@dataclass(frozen=True)
class HistorySummary:
    """Statistics over a history window."""

    points: list[HistoryPoint]
    average: float
    days_under: int
    days_over: int
    has_data: bool

    @property
    def count(self) -> int:
        return len(self.points)

    @property
    def percent_under(self) -> float:
        return self.days_under / self.count * 100 if self.points else 0.0

    @property
    def percent_over(self) -> float:
        return self.days_over / self.count * 100 if self.points else 0.0


@dataclass(frozen=True)
class DayDetail:
    """A single day's ledger looked up in calendar mode."""

    day: date
    entries: list[IntakeEntry]
    total_kcal: float
    progress: Progress | None


@dataclass(frozen=True)
class DashboardSnapshot:
    """Derived state for the active profile on one day."""

    profile: Profile
    day: date
    entries: list[IntakeEntry]
    consumed: float
    target: int
    progress: Progress | None
    message: str


@dataclass(frozen=True)
class ExportRequest:
    """Everything the report collaborator needs for one day."""

    profile: Profile
    date: date
    entries: list[IntakeEntry]
    foods: list[FoodItem]
    total_consumed: float
