"""Tests for the food catalog."""

import pytest

from calorie_tracker.domain.models import FoodItem
from calorie_tracker.services.catalog import CATEGORIES, FoodCatalog
from calorie_tracker.services.storage import FOODS_CACHE_KEY, PersistentStore


def test_builtin_catalog_loads(catalog: FoodCatalog) -> None:
    assert catalog.builtin
    assert all(not food.is_custom for food in catalog.builtin)
    assert catalog.get("fruit-001") is not None


def test_sync_cache_mirrors_builtin(
    catalog: FoodCatalog, store: PersistentStore
) -> None:
    catalog.sync_cache()

    assert store.read(FOODS_CACHE_KEY, list[FoodItem], []) == catalog.builtin


def test_search_by_query_and_category(catalog: FoodCatalog) -> None:
    apples = catalog.search(query="APPL")
    fruits = catalog.search(category="Fruits")

    assert [food.id for food in apples] == ["fruit-001"]
    assert fruits
    assert all(food.category == "Fruits" for food in fruits)
    assert catalog.search(query="apple", category="Vegetables") == []


def test_custom_foods_are_per_profile(catalog: FoodCatalog) -> None:
    food = catalog.add_custom_food("p1", "Grandma's stew", 320, "1 bowl")

    assert food.is_custom
    assert catalog.get(food.id, "p1") == food
    assert catalog.get(food.id, "p2") is None
    assert [f.id for f in catalog.search("p1", query="stew")] == [food.id]
    assert catalog.search("p2", query="stew") == []


def test_custom_food_validation(catalog: FoodCatalog) -> None:
    with pytest.raises(ValueError):
        catalog.add_custom_food("p1", " ", 100)
    with pytest.raises(ValueError):
        catalog.add_custom_food("p1", "Soup", -1)


def test_categories_start_with_known_order(catalog: FoodCatalog) -> None:
    assert catalog.categories()[: len(CATEGORIES)] == CATEGORIES
