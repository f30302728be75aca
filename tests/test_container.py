"""Tests for container wiring."""

import pytest

from calorie_tracker.adapters.json_file_backend import JsonFileBackend
from calorie_tracker.adapters.memory_backend import InMemoryBackend
from calorie_tracker.config import Settings
from calorie_tracker.containers import build_backend, build_container
from calorie_tracker.domain.models import FoodItem
from calorie_tracker.services.storage import FOODS_CACHE_KEY


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert isinstance(container.store.backend, InMemoryBackend)
    assert container.profile_directory.session is container.session
    assert container.store.read(FOODS_CACHE_KEY, list[FoodItem], [])


def test_file_backend_uses_storage_path(settings: Settings) -> None:
    settings.storage_backend = "file"

    backend = build_backend(settings)

    assert isinstance(backend, JsonFileBackend)
    assert backend.path == settings.storage_path


def test_supabase_backend_requires_credentials(settings: Settings) -> None:
    settings.storage_backend = "supabase"

    with pytest.raises(ValueError):
        build_backend(settings)
