"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import date

import pytest

from calorie_tracker.adapters.memory_backend import InMemoryBackend
from calorie_tracker.config import Settings
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.models import ActivityLevel, Profile, Sex
from calorie_tracker.domain.progress import ExportRequest
from calorie_tracker.services.catalog import FoodCatalog
from calorie_tracker.services.dashboard import DashboardService
from calorie_tracker.services.export import Exporter, ExportService
from calorie_tracker.services.history import HistoryAggregator
from calorie_tracker.services.profiles import ProfileDirectory, SessionContext
from calorie_tracker.services.storage import PersistentStore, StorageError

TODAY = date(2024, 3, 15)


@dataclass
class FailingBackend(InMemoryBackend):
    """In-memory backend that fails for selected keys."""

    fail_reads: set[str] = field(default_factory=set)
    fail_writes: set[str] = field(default_factory=set)
    fail_deletes: set[str] = field(default_factory=set)
    fail_keys: bool = False

    def get(self, key: str) -> str | None:
        if key in self.fail_reads:
            raise StorageError(f"read failed for {key}")
        return super().get(key)

    def set(self, key: str, value: str) -> None:
        if key in self.fail_writes:
            raise StorageError(f"write failed for {key}")
        super().set(key, value)

    def delete(self, key: str) -> None:
        if key in self.fail_deletes:
            raise StorageError(f"delete failed for {key}")
        super().delete(key)

    def keys(self) -> list[str]:
        if self.fail_keys:
            raise StorageError("listing failed")
        return super().keys()


@dataclass
class RecordingExporter(Exporter):
    """Exporter that records requests and can be told to fail."""

    requests: list[ExportRequest] = field(default_factory=list)
    fail: bool = False

    def export(self, request: ExportRequest) -> None:
        if self.fail:
            raise RuntimeError("printer on fire")
        self.requests.append(request)


def register_completed(
    directory: ProfileDirectory, name: str = "Ana", password: str = "secret"
) -> Profile:
    """Register a profile and enter physical data for it."""
    result = directory.register(name, password)
    assert result.profile is not None
    completed = directory.complete_registration(
        sex=Sex.FEMALE,
        age=30,
        weight_kg=60,
        height_cm=165,
        activity_level=ActivityLevel.MODERATE,
    )
    assert completed.profile is not None
    return completed.profile


@pytest.fixture
def backend() -> FailingBackend:
    return FailingBackend()


@pytest.fixture
def store(backend: FailingBackend) -> PersistentStore:
    return PersistentStore(backend)


@pytest.fixture
def session(store: PersistentStore) -> SessionContext:
    return SessionContext(store)


@pytest.fixture
def directory(store: PersistentStore, session: SessionContext) -> ProfileDirectory:
    return ProfileDirectory(store, session)


@pytest.fixture
def catalog(store: PersistentStore) -> FoodCatalog:
    return FoodCatalog(store)


@pytest.fixture
def history(store: PersistentStore) -> HistoryAggregator:
    return HistoryAggregator(store, today=lambda: TODAY)


@pytest.fixture
def exporter() -> RecordingExporter:
    return RecordingExporter()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        storage_backend="memory",
        storage_path=tmp_path / "store.json",
        export_dir=tmp_path / "exports",
    )


@pytest.fixture
def container(
    settings: Settings,
    store: PersistentStore,
    session: SessionContext,
    directory: ProfileDirectory,
    catalog: FoodCatalog,
    history: HistoryAggregator,
    exporter: RecordingExporter,
) -> AppContainer:
    catalog.sync_cache()
    return AppContainer(
        settings=settings,
        store=store,
        session=session,
        profile_directory=directory,
        food_catalog=catalog,
        dashboard_service=DashboardService(store, directory, today=lambda: TODAY),
        history_aggregator=history,
        export_service=ExportService(exporter),
    )
