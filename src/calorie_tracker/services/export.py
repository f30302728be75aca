"""Hand-off of a day's intake to a report collaborator."""

import logging
from dataclasses import dataclass
from typing import Protocol

from calorie_tracker.domain.progress import ExportRequest, ProgressState
from calorie_tracker.services.targets import classify, resolve_target

logger = logging.getLogger(__name__)

LINES_PER_PAGE = 40
FALLBACK_ENTRY_NAME = "Custom food"

_STATE_LABELS = {
    ProgressState.OK: "Within goal",
    ProgressState.NEAR: "Near goal",
    ProgressState.OVER: "Exceeded",
}


class Exporter(Protocol):
    """Renders an export request somewhere outside the core."""

    def export(self, request: ExportRequest) -> None:
        """Produce the report; raise on failure."""


@dataclass
class ExportService:
    """Fire-and-forget export with its own failure channel."""

    exporter: Exporter

    def export(self, request: ExportRequest) -> bool:
        """Return False instead of raising when the exporter fails."""
        try:
            self.exporter.export(request)
        except Exception:
            logger.exception("Failed to export report for %s", request.date)
            return False
        return True


def report_lines(request: ExportRequest) -> list[str]:
    """Plain report content: profile, targets, totals and itemized foods."""
    profile = request.profile
    target = resolve_target(profile)
    lines = [
        "Calorie Report",
        f"Date: {request.date.isoformat()}",
        "",
        "Profile",
        f"Name: {profile.name}",
        f"Age: {profile.age} years",
        f"Weight: {profile.weight_kg:g} kg",
        f"Height: {profile.height_cm:g} cm",
        f"TDEE: {profile.tdee} kcal",
        f"Daily target ({profile.goal}): {target} kcal",
        "",
        "Summary",
        f"Total consumed: {round(request.total_consumed)} kcal",
    ]
    if target > 0:
        difference = request.total_consumed - target
        if difference > 0:
            lines.append(f"Over by: {round(difference)} kcal")
        else:
            lines.append(f"Remaining: {round(-difference)} kcal")
        state = classify(request.total_consumed, target).state
        lines.append(f"Status: {_STATE_LABELS[state]}")

    if request.entries:
        names = {food.id: food.name for food in request.foods}
        lines += ["", "Foods consumed"]
        for index, entry in enumerate(request.entries, start=1):
            name = (
                names.get(entry.food_id or "")
                or entry.custom_name
                or FALLBACK_ENTRY_NAME
            )
            lines.append(f"{index}. {name}")
            lines.append(
                f"   {entry.kcal_per_unit:g} kcal x {entry.units} = {entry.kcal:g} kcal"
            )
    return lines


def paginate(lines: list[str], per_page: int = LINES_PER_PAGE) -> list[list[str]]:
    return [lines[start : start + per_page] for start in range(0, len(lines), per_page)]
