"""Food catalog: built-in reference foods plus per-profile custom foods."""

import json
import logging
from dataclasses import dataclass, field
from importlib import resources
from uuid import uuid4

from calorie_tracker.domain.models import FoodItem
from calorie_tracker.services.storage import (
    FOODS_CACHE_KEY,
    PersistentStore,
    custom_foods_key,
)

logger = logging.getLogger(__name__)

CATEGORIES = [
    "Cereals without fat",
    "Cereals with fat",
    "Vegetables",
    "Fruits",
    "Animal protein, very low fat",
    "Animal protein, low fat",
    "Animal protein, moderate fat",
    "Animal protein, high fat",
    "Milk and substitutes",
    "Legumes",
    "Monounsaturated fats",
    "Polyunsaturated fats",
    "Saturated and trans fats",
    "Sugars",
    "Energy-free",
]

CUSTOM_CATEGORY = "Custom"


def load_builtin_foods() -> list[FoodItem]:
    """Load the catalog shipped with the package."""
    raw = (
        resources.files("calorie_tracker")
        .joinpath("data/foods.seed.json")
        .read_text(encoding="utf-8")
    )
    return [FoodItem.model_validate(item) for item in json.loads(raw)]


@dataclass
class FoodCatalog:
    """Read-only built-in foods unioned with each profile's custom foods."""

    store: PersistentStore
    builtin: list[FoodItem] = field(default_factory=load_builtin_foods)

    def sync_cache(self) -> None:
        """Mirror the built-in catalog into the store."""
        self.store.write(FOODS_CACHE_KEY, list[FoodItem], self.builtin)

    def categories(self) -> list[str]:
        extra = sorted(
            {item.category for item in self.builtin} - set(CATEGORIES)
        )
        return [*CATEGORIES, *extra]

    def custom_foods(self, profile_id: str) -> list[FoodItem]:
        return self.store.read(custom_foods_key(profile_id), list[FoodItem], [])

    def all_foods(self, profile_id: str | None = None) -> list[FoodItem]:
        if profile_id is None:
            return list(self.builtin)
        return [*self.builtin, *self.custom_foods(profile_id)]

    def get(self, food_id: str, profile_id: str | None = None) -> FoodItem | None:
        return next(
            (item for item in self.all_foods(profile_id) if item.id == food_id), None
        )

    def search(
        self,
        profile_id: str | None = None,
        query: str | None = None,
        category: str | None = None,
    ) -> list[FoodItem]:
        """Filter by category, then by case-insensitive name substring."""
        foods = self.all_foods(profile_id)
        if category:
            foods = [item for item in foods if item.category == category]
        needle = (query or "").strip().lower()
        if needle:
            foods = [item for item in foods if needle in item.name.lower()]
        return foods

    def add_custom_food(
        self,
        profile_id: str,
        name: str,
        kcal_per_serving: float,
        serving_name: str = "1 serving",
        category: str = CUSTOM_CATEGORY,
    ) -> FoodItem:
        """Append a user-created food to the profile's extension set."""
        label = name.strip()
        if not label:
            raise ValueError("Custom foods need a name")
        if kcal_per_serving < 0:
            raise ValueError("Calories cannot be negative")
        food = FoodItem(
            id=f"custom-{uuid4().hex}",
            name=label,
            category=category.strip() or CUSTOM_CATEGORY,
            kcal_per_serving=kcal_per_serving,
            serving_name=serving_name.strip() or "1 serving",
            is_custom=True,
        )
        foods = self.custom_foods(profile_id)
        self.store.write(custom_foods_key(profile_id), list[FoodItem], [*foods, food])
        logger.info("Added custom food %s for profile %s", food.id, profile_id)
        return food
