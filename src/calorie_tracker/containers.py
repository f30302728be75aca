"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from calorie_tracker.adapters.json_file_backend import JsonFileBackend
from calorie_tracker.adapters.memory_backend import InMemoryBackend
from calorie_tracker.adapters.supabase_kv_backend import SupabaseKeyValueBackend
from calorie_tracker.adapters.text_report_exporter import TextReportExporter
from calorie_tracker.config import Settings
from calorie_tracker.services.catalog import FoodCatalog
from calorie_tracker.services.dashboard import DashboardService
from calorie_tracker.services.export import ExportService
from calorie_tracker.services.history import HistoryAggregator
from calorie_tracker.services.profiles import ProfileDirectory, SessionContext
from calorie_tracker.services.storage import (
    KeyValueBackend,
    PersistentStore,
    StorageEventBus,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: PersistentStore
    session: SessionContext
    profile_directory: ProfileDirectory
    food_catalog: FoodCatalog
    dashboard_service: DashboardService
    history_aggregator: HistoryAggregator
    export_service: ExportService


def build_backend(settings: Settings) -> KeyValueBackend:
    """Create the key-value backend selected by the settings."""
    if settings.storage_backend == "memory":
        return InMemoryBackend()
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "Supabase storage needs SUPABASE_URL and SUPABASE_SERVICE_KEY"
            )
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseKeyValueBackend(client, table=settings.supabase_table)
    return JsonFileBackend(settings.storage_path)


def build_container(
    settings: Settings | None = None,
    backend: KeyValueBackend | None = None,
    bus: StorageEventBus | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = PersistentStore(backend or build_backend(resolved_settings), bus=bus)
    session = SessionContext(store)
    profile_directory = ProfileDirectory(store, session)
    food_catalog = FoodCatalog(store)
    food_catalog.sync_cache()
    return AppContainer(
        settings=resolved_settings,
        store=store,
        session=session,
        profile_directory=profile_directory,
        food_catalog=food_catalog,
        dashboard_service=DashboardService(store, profile_directory),
        history_aggregator=HistoryAggregator(store),
        export_service=ExportService(TextReportExporter(resolved_settings.export_dir)),
    )
