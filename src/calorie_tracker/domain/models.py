"""Domain models persisted in the key-value store."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Sex(StrEnum):
    """Biological sex used by the BMR formula."""

    MALE = "male"
    FEMALE = "female"


class ActivityLevel(StrEnum):
    """Self-reported activity level."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    INTENSE = "intense"
    VERY_INTENSE = "very_intense"


# Activity values written by earlier versions of the app.
LEGACY_ACTIVITY_LEVELS: dict[str, ActivityLevel] = {
    "sedentario": ActivityLevel.SEDENTARY,
    "ligero": ActivityLevel.LIGHT,
    "moderado": ActivityLevel.MODERATE,
    "intenso": ActivityLevel.INTENSE,
    "muy_intenso": ActivityLevel.VERY_INTENSE,
}


class Goal(StrEnum):
    """Weight goal applied on top of TDEE."""

    DEFICIT = "deficit"
    MAINTENANCE = "maintenance"
    SURPLUS = "surplus"


class StoredModel(BaseModel):
    """Base for records stored as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Profile(StoredModel):
    """A named user profile.

    Profiles written before physical data or goals existed are missing those
    fields; the defaults below fill them in when the record is read back.
    """

    id: str
    name: str
    password: str
    sex: Sex = Sex.MALE
    age: int = 0
    weight_kg: float = 0
    height_cm: float = 0
    activity_level: ActivityLevel = Field(
        default=ActivityLevel.SEDENTARY,
        validation_alias=AliasChoices("activityLevel", "activity_level", "activity"),
    )
    tdee: int = 0
    goal: Goal = Goal.MAINTENANCE
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    @field_validator("activity_level", mode="before")
    @classmethod
    def _translate_legacy_activity(cls, value: object) -> object:
        if isinstance(value, str):
            return LEGACY_ACTIVITY_LEVELS.get(value, value)
        return value

    @property
    def has_energy_data(self) -> bool:
        """Return True once physical data has been entered."""
        return self.tdee > 0


class IntakeEntry(StoredModel):
    """One row of a day's intake ledger."""

    id: str
    date_iso: str = Field(
        alias="dateISO",
        validation_alias=AliasChoices("dateISO", "date_iso"),
    )
    food_id: str | None = None
    custom_name: str | None = None
    kcal_per_unit: float
    units: int = Field(default=1, ge=1)
    timestamp: int

    @property
    def kcal(self) -> float:
        """Calories contributed by this entry."""
        return self.kcal_per_unit * self.units


class FoodItem(StoredModel):
    """Catalog food, built-in or user-created."""

    id: str
    name: str
    category: str
    kcal_per_serving: float
    serving_name: str
    kcal_per100g: float | None = Field(
        default=None,
        alias="kcalPer100g",
        validation_alias=AliasChoices("kcalPer100g", "kcal_per100g"),
    )
    is_custom: bool = False
