"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from calorie_tracker.api.models import (
    CatalogEntryCreate,
    Credentials,
    CustomFoodCreate,
    GoalUpdate,
    ManualEntryCreate,
    PhysicalData,
    UnitsUpdate,
)
from calorie_tracker.app_logging import configure_logging
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.models import FoodItem, IntakeEntry, Profile
from calorie_tracker.domain.profiles import ProfileErrorCode, ProfileResult
from calorie_tracker.domain.progress import (
    DashboardSnapshot,
    DayDetail,
    ExportRequest,
    HistorySummary,
    Progress,
)
from calorie_tracker.services.intake import IntakeLedger, total_kcal
from calorie_tracker.services.targets import ring_fill, state_message

_ERROR_STATUS = {
    ProfileErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ProfileErrorCode.WEAK_PASSWORD: status.HTTP_400_BAD_REQUEST,
    ProfileErrorCode.DUPLICATE_NAME: status.HTTP_409_CONFLICT,
    ProfileErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ProfileErrorCode.WRONG_PASSWORD: status.HTTP_401_UNAUTHORIZED,
    ProfileErrorCode.NO_ACTIVE_PROFILE: status.HTTP_401_UNAUTHORIZED,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        poller = asyncio.create_task(_poll_external_changes(app.state.container))
        yield
        poller.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await poller

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/profiles")
    async def list_profiles(request: Request) -> dict[str, object]:
        """Return profiles for the profile picker."""
        state_container: AppContainer = request.app.state.container
        profiles = state_container.profile_directory.list_profiles()
        return {"profiles": [_profile_payload(profile) for profile in profiles]}

    @app.delete("/profiles/{profile_id}")
    async def delete_profile(profile_id: str, request: Request) -> dict[str, str]:
        """Delete a profile with all of its ledgers and custom foods."""
        state_container: AppContainer = request.app.state.container
        if state_container.profile_directory.get(profile_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        state_container.profile_directory.delete_profile(profile_id)
        return {"status": "deleted"}

    @app.get("/session")
    async def current_session(request: Request) -> dict[str, object]:
        """Return the active profile, if any."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_directory.active_profile()
        return {"profile": _profile_payload(profile) if profile else None}

    @app.post("/session/register")
    async def register(body: Credentials, request: Request) -> JSONResponse:
        state_container: AppContainer = request.app.state.container
        result = state_container.profile_directory.register(body.name, body.password)
        return _result_response(result)

    @app.post("/session/login")
    async def login(body: Credentials, request: Request) -> JSONResponse:
        state_container: AppContainer = request.app.state.container
        result = state_container.profile_directory.login(body.name, body.password)
        return _result_response(result)

    @app.post("/session/logout")
    async def logout(request: Request) -> dict[str, str]:
        state_container: AppContainer = request.app.state.container
        state_container.profile_directory.logout()
        return {"status": "ok"}

    @app.put("/profile/physical")
    async def update_physical(body: PhysicalData, request: Request) -> JSONResponse:
        """Complete registration with physical data and compute TDEE."""
        state_container: AppContainer = request.app.state.container
        result = state_container.profile_directory.complete_registration(
            sex=body.sex,
            age=body.age,
            weight_kg=body.weight_kg,
            height_cm=body.height_cm,
            activity_level=body.activity_level,
        )
        return _result_response(result)

    @app.put("/profile/goal")
    async def update_goal(body: GoalUpdate, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_directory.set_goal(body.goal)
        if profile is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        return {"profile": _profile_payload(profile)}

    @app.get("/foods")
    async def search_foods(
        request: Request, query: str | None = None, category: str | None = None
    ) -> dict[str, object]:
        """Search the built-in catalog and the active profile's custom foods."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_directory.active_profile()
        foods = state_container.food_catalog.search(
            profile.id if profile else None, query=query, category=category
        )
        return {"foods": [_food_payload(food) for food in foods]}

    @app.get("/foods/categories")
    async def food_categories(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        return {"categories": state_container.food_catalog.categories()}

    @app.post("/foods", status_code=status.HTTP_201_CREATED)
    async def create_custom_food(
        body: CustomFoodCreate, request: Request
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        profile = _require_profile(state_container)
        try:
            food = state_container.food_catalog.add_custom_food(
                profile.id,
                name=body.name,
                kcal_per_serving=body.kcal_per_serving,
                serving_name=body.serving_name,
                category=body.category,
            )
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        return {"food": _food_payload(food)}

    @app.get("/intake")
    async def dashboard(request: Request, day: date | None = None) -> dict[str, object]:
        """Return the dashboard state for the active profile."""
        state_container: AppContainer = request.app.state.container
        _require_ledger(state_container, day)
        snapshot = state_container.dashboard_service.snapshot(day)
        if snapshot is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        return _snapshot_payload(snapshot)

    @app.post("/intake/catalog")
    async def add_catalog_entry(
        body: CatalogEntryCreate, request: Request, day: date | None = None
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        ledger = _require_ledger(state_container, day)
        food = state_container.food_catalog.get(body.food_id, ledger.profile_id)
        if food is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Unknown food"
            )
        return _entries_payload(ledger.add_catalog_entry(food, body.units))

    @app.post("/intake/manual")
    async def add_manual_entry(
        body: ManualEntryCreate, request: Request, day: date | None = None
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        ledger = _require_ledger(state_container, day)
        try:
            entries = ledger.add_manual_entry(body.name, body.kcal_per_unit, body.units)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        return _entries_payload(entries)

    @app.patch("/intake/{entry_id}")
    async def set_units(
        entry_id: str, body: UnitsUpdate, request: Request, day: date | None = None
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        ledger = _require_ledger(state_container, day)
        return _entries_payload(ledger.set_units(entry_id, body.units))

    @app.post("/intake/{entry_id}/increment")
    async def increment(
        entry_id: str, request: Request, day: date | None = None
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        ledger = _require_ledger(state_container, day)
        return _entries_payload(ledger.increment(entry_id))

    @app.post("/intake/{entry_id}/decrement")
    async def decrement(
        entry_id: str, request: Request, day: date | None = None
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        ledger = _require_ledger(state_container, day)
        return _entries_payload(ledger.decrement(entry_id))

    @app.delete("/intake/{entry_id}")
    async def remove_entry(
        entry_id: str, request: Request, day: date | None = None
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        ledger = _require_ledger(state_container, day)
        return _entries_payload(ledger.remove_entry(entry_id))

    @app.delete("/intake")
    async def reset_day(request: Request, day: date | None = None) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        ledger = _require_ledger(state_container, day)
        ledger.reset_day()
        return _entries_payload([])

    @app.get("/history")
    async def history(request: Request, days: int | None = None) -> dict[str, object]:
        """Return a window of daily totals ending today."""
        state_container: AppContainer = request.app.state.container
        profile = _require_completed_profile(state_container)
        window_days = (
            days if days is not None else state_container.settings.history_window_days
        )
        if window_days < 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The window must cover at least one day",
            )
        aggregator = state_container.history_aggregator
        summary = aggregator.summarize(
            aggregator.build_window(profile.id, profile.tdee, window_days)
        )
        return _summary_payload(summary)

    @app.get("/history/{day}")
    async def history_day(day: date, request: Request) -> dict[str, object]:
        """Return a single past day's ledger."""
        state_container: AppContainer = request.app.state.container
        profile = _require_completed_profile(state_container)
        detail = state_container.history_aggregator.read_day(
            profile.id, day, goal=profile.tdee
        )
        if detail is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Future days are not available",
            )
        return _day_payload(detail)

    @app.post("/export")
    async def export_day(request: Request, day: date | None = None) -> dict[str, object]:
        """Hand the day's intake to the report exporter."""
        state_container: AppContainer = request.app.state.container
        ledger = _require_ledger(state_container, day)
        profile = _require_completed_profile(state_container)
        entries = ledger.entries()
        export_request = ExportRequest(
            profile=profile,
            date=ledger.day,
            entries=entries,
            foods=state_container.food_catalog.all_foods(profile.id),
            total_consumed=total_kcal(entries),
        )
        exported = state_container.export_service.export(export_request)
        if not exported:
            logger.warning("Export failed for profile %s", profile.id)
        return {"exported": exported}

    return app


async def _poll_external_changes(container: AppContainer) -> None:
    """Forward writes made by other processes to this process's subscribers."""
    interval = container.settings.change_poll_seconds
    if interval <= 0:
        return
    while True:
        await asyncio.sleep(interval)
        container.store.poll_external()


def _require_profile(container: AppContainer) -> Profile:
    profile = container.profile_directory.active_profile()
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not logged in"
        )
    return profile


def _require_completed_profile(container: AppContainer) -> Profile:
    profile = _require_profile(container)
    if not profile.has_energy_data:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Physical data has not been entered yet",
        )
    return profile


def _require_ledger(container: AppContainer, day: date | None) -> IntakeLedger:
    profile = _require_completed_profile(container)
    ledger = container.history_aggregator.ledger_for_day(
        profile.id, day or container.history_aggregator.today()
    )
    if ledger is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Future days are not available",
        )
    return ledger


def _result_response(result: ProfileResult) -> JSONResponse:
    if result.success and result.profile is not None:
        return JSONResponse(
            {"success": True, "profile": _profile_payload(result.profile)}
        )
    error = result.error or ProfileErrorCode.VALIDATION_ERROR
    return JSONResponse(
        {"success": False, "error": error.value, "message": result.message},
        status_code=_ERROR_STATUS[error],
    )


def _profile_payload(profile: Profile) -> dict[str, object]:
    return profile.model_dump(mode="json", by_alias=True, exclude={"password"})


def _food_payload(food: FoodItem) -> dict[str, object]:
    return food.model_dump(mode="json", by_alias=True)


def _entry_payload(entry: IntakeEntry) -> dict[str, object]:
    payload = entry.model_dump(mode="json", by_alias=True)
    payload["kcal"] = entry.kcal
    return payload


def _entries_payload(entries: list[IntakeEntry]) -> dict[str, object]:
    return {
        "entries": [_entry_payload(entry) for entry in entries],
        "total_kcal": total_kcal(entries),
    }


def _progress_payload(progress: Progress | None) -> dict[str, object] | None:
    if progress is None:
        return None
    return {
        "percentage": progress.percentage,
        "ring_fill": ring_fill(progress.percentage),
        "remaining": progress.remaining,
        "state": progress.state.value,
        "state_message": state_message(progress.state),
    }


def _snapshot_payload(snapshot: DashboardSnapshot) -> dict[str, object]:
    return {
        "profile": _profile_payload(snapshot.profile),
        "day": snapshot.day.isoformat(),
        **_entries_payload(snapshot.entries),
        "consumed": snapshot.consumed,
        "target": snapshot.target,
        "progress": _progress_payload(snapshot.progress),
        "message": snapshot.message,
    }


def _summary_payload(summary: HistorySummary) -> dict[str, object]:
    return {
        "points": [
            {"day": point.day.isoformat(), "kcal": point.kcal, "goal": point.goal}
            for point in summary.points
        ],
        "average": summary.average,
        "days_under": summary.days_under,
        "days_over": summary.days_over,
        "has_data": summary.has_data,
    }


def _day_payload(detail: DayDetail) -> dict[str, object]:
    return {
        "day": detail.day.isoformat(),
        **_entries_payload(detail.entries),
        "progress": _progress_payload(detail.progress),
    }
