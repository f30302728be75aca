"""Basal metabolic rate and total daily energy expenditure."""

from calorie_tracker.domain.models import ActivityLevel, Sex
from calorie_tracker.domain.progress import EnergyResult

ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.20,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.INTENSE: 1.725,
    ActivityLevel.VERY_INTENSE: 1.90,
}

MIN_AGE = 13
MIN_WEIGHT_KG = 30
MIN_HEIGHT_CM = 120


def basal_metabolic_rate(
    sex: Sex, age: int, weight_kg: float, height_cm: float
) -> float:
    """Mifflin-St Jeor BMR, unrounded."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if sex == Sex.MALE else base - 161


def compute_energy(
    sex: Sex,
    age: int,
    weight_kg: float,
    height_cm: float,
    activity_level: ActivityLevel,
) -> EnergyResult:
    """Return rounded BMR and TDEE.

    The activity multiplier is applied to the unrounded BMR. Inputs are not
    validated here; see ``within_registration_bounds``.
    """
    bmr = basal_metabolic_rate(sex, age, weight_kg, height_cm)
    tdee = bmr * ACTIVITY_MULTIPLIERS[ActivityLevel(activity_level)]
    return EnergyResult(bmr=round(bmr), tdee=round(tdee))


def within_registration_bounds(age: int, weight_kg: float, height_cm: float) -> bool:
    """Return True when physical data is acceptable for registration."""
    return age >= MIN_AGE and weight_kg >= MIN_WEIGHT_KG and height_cm >= MIN_HEIGHT_CM
