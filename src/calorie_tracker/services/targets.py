"""Daily target resolution and progress classification.

All thresholds apply to the raw, unclamped percentage of the target. Clamping
is only used for drawing the progress ring.
"""

import random
from collections.abc import Callable, Sequence

from calorie_tracker.domain.models import Goal, Profile
from calorie_tracker.domain.progress import Progress, ProgressBand, ProgressState

GOAL_ADJUSTMENTS: dict[Goal, int] = {
    Goal.DEFICIT: -500,
    Goal.MAINTENANCE: 0,
    Goal.SURPLUS: 300,
}

NEAR_LOWER_PERCENT = 95
NEAR_UPPER_PERCENT = 105

# Lower bounds of each band, checked from the top down.
_BANDS: list[tuple[float, ProgressBand]] = [
    (90, ProgressBand.ALMOST),
    (75, ProgressBand.THREE_QUARTERS),
    (50, ProgressBand.HALF),
    (25, ProgressBand.QUARTER),
]

_BAND_MESSAGES: dict[ProgressBand, str] = {
    ProgressBand.NOT_STARTED: "Log your first food of the day to get started.",
    ProgressBand.STARTED: "Good start! {remaining} kcal to go.",
    ProgressBand.QUARTER: "A quarter of the way there. {remaining} kcal left.",
    ProgressBand.HALF: "Halfway done. {remaining} kcal left.",
    ProgressBand.THREE_QUARTERS: "Three quarters done. {remaining} kcal left.",
    ProgressBand.ALMOST: "Almost there! Only {remaining} kcal left.",
    ProgressBand.REACHED: "You reached your goal for today.",
    ProgressBand.EXCEEDED: "You went {over} kcal over your goal. Tomorrow is a new day.",
}

NO_TARGET_MESSAGE = "Enter your physical data to calculate your daily goal."

STATE_MESSAGES: dict[ProgressState, tuple[str, ...]] = {
    ProgressState.OK: (
        "You are doing great, keep it up",
        "Excellent progress",
        "Keep up the pace",
        "Great work so far",
    ),
    ProgressState.NEAR: (
        "You have almost reached your goal",
        "You are very close",
        "A little more and you are there",
        "Nearly there",
    ),
    ProgressState.OVER: (
        "You went over your goal, tomorrow will be better",
        "Don't worry, tomorrow is a new day",
        "We all have days like this",
        "What matters is to keep trying",
    ),
}


def resolve_target(profile: Profile) -> int:
    """Return the goal-adjusted daily target, or 0 before TDEE is known."""
    if profile.tdee == 0:
        return 0
    goal = profile.goal or Goal.MAINTENANCE
    return round(profile.tdee + GOAL_ADJUSTMENTS[Goal(goal)])


def percentage_of(consumed: float, target: float) -> float:
    """Raw percentage of the target; 0 when there is no target."""
    if target <= 0:
        return 0.0
    return consumed / target * 100


def state_for(percentage: float) -> ProgressState:
    if percentage <= NEAR_LOWER_PERCENT:
        return ProgressState.OK
    if percentage <= NEAR_UPPER_PERCENT:
        return ProgressState.NEAR
    return ProgressState.OVER


def classify(consumed: float, target: float) -> Progress:
    """Classify consumption against a target.

    A target of 0 means "not calculable"; the percentage is reported as 0 and
    callers should not present the result as a real goal.
    """
    percentage = percentage_of(consumed, target)
    return Progress(
        percentage=percentage,
        remaining=target - consumed,
        state=state_for(percentage),
    )


def is_under(kcal: float, goal: float) -> bool:
    """True when a day's total is below the near-goal range."""
    return kcal < goal * NEAR_LOWER_PERCENT / 100


def is_over(kcal: float, goal: float) -> bool:
    """True when a day's total is above the near-goal range."""
    return kcal > goal * NEAR_UPPER_PERCENT / 100


def progress_band(percentage: float) -> ProgressBand:
    if percentage <= 0:
        return ProgressBand.NOT_STARTED
    if percentage > 100:
        return ProgressBand.EXCEEDED
    if percentage == 100:
        return ProgressBand.REACHED
    for lower, band in _BANDS:
        if percentage >= lower:
            return band
    return ProgressBand.STARTED


def progress_message(consumed: float, target: float) -> str:
    """Motivational copy for the dashboard."""
    if target <= 0:
        return NO_TARGET_MESSAGE
    progress = classify(consumed, target)
    template = _BAND_MESSAGES[progress_band(progress.percentage)]
    return template.format(
        remaining=round(max(progress.remaining, 0)),
        over=round(max(-progress.remaining, 0)),
    )


def state_message(
    state: ProgressState,
    choose: Callable[[Sequence[str]], str] = random.choice,
) -> str:
    """Pick one of the encouragement phrases for a progress state."""
    return choose(STATE_MESSAGES[state])


def ring_fill(percentage: float) -> float:
    """Percentage clamped to [0, 100] for drawing the ring."""
    return min(max(percentage, 0.0), 100.0)
