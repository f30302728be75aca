"""Pydantic models for API request bodies."""

from pydantic import BaseModel, Field

from calorie_tracker.domain.models import ActivityLevel, Goal, Sex


class Credentials(BaseModel):
    """Name and password for register and login."""

    name: str
    password: str


class PhysicalData(BaseModel):
    """Body and activity inputs for the energy calculation."""

    sex: Sex
    age: int
    weight_kg: float
    height_cm: float
    activity_level: ActivityLevel


class GoalUpdate(BaseModel):
    goal: Goal


class CatalogEntryCreate(BaseModel):
    food_id: str
    units: int = 1


class ManualEntryCreate(BaseModel):
    name: str
    kcal_per_unit: float = Field(gt=0)
    units: int = 1


class UnitsUpdate(BaseModel):
    units: int


class CustomFoodCreate(BaseModel):
    name: str
    kcal_per_serving: float = Field(ge=0)
    serving_name: str = "1 serving"
    category: str = "Custom"
