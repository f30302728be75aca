"""Profile directory: registration, login and profile lifecycle."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from pydantic import ValidationError

from calorie_tracker.domain.models import ActivityLevel, Goal, Profile, Sex
from calorie_tracker.domain.profiles import ProfileErrorCode, ProfileResult
from calorie_tracker.services.energy import compute_energy, within_registration_bounds
from calorie_tracker.services.storage import (
    ACTIVE_PROFILE_KEY,
    PROFILES_KEY,
    PersistentStore,
    Unsubscribe,
    custom_foods_key,
    intake_prefix,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 4


@dataclass
class SessionContext:
    """Holds the active-profile pointer shared by every component.

    ``None`` is the explicit "nobody logged in" state.
    """

    store: PersistentStore

    @property
    def active_profile_id(self) -> str | None:
        return self.store.read(ACTIVE_PROFILE_KEY, str | None, None) or None

    def activate(self, profile_id: str) -> None:
        self.store.write(ACTIVE_PROFILE_KEY, str | None, profile_id)

    def clear(self) -> None:
        self.store.remove(ACTIVE_PROFILE_KEY)

    def subscribe(self, callback: Callable[[str | None], None]) -> Unsubscribe:
        """Call back with the new active id whenever it changes."""
        return self.store.subscribe(ACTIVE_PROFILE_KEY, str | None, None, callback)


@dataclass
class ProfileDirectory:
    """Owns the profile collection and authenticates against it."""

    store: PersistentStore
    session: SessionContext

    def list_profiles(self) -> list[Profile]:
        """Return all profiles, normalized with defaults for missing fields."""
        return self.store.read(PROFILES_KEY, list[Profile], [])

    def get(self, profile_id: str) -> Profile | None:
        return next((p for p in self.list_profiles() if p.id == profile_id), None)

    def active_profile(self) -> Profile | None:
        """Return the active profile, or None if nobody is logged in."""
        active_id = self.session.active_profile_id
        if active_id is None:
            return None
        return self.get(active_id)

    def subscribe(self, callback: Callable[[list[Profile]], None]) -> Unsubscribe:
        return self.store.subscribe(PROFILES_KEY, list[Profile], [], callback)

    def register(self, name: str, password: str) -> ProfileResult:
        """Create a profile and make it active."""
        trimmed_name = name.strip()
        trimmed_password = password.strip()
        if not trimmed_name or not trimmed_password:
            return ProfileResult.fail(
                ProfileErrorCode.VALIDATION_ERROR, "Please fill in all fields"
            )
        if len(trimmed_password) < MIN_PASSWORD_LENGTH:
            return ProfileResult.fail(
                ProfileErrorCode.WEAK_PASSWORD,
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )

        profiles = self.list_profiles()
        if _find_by_name(profiles, trimmed_name) is not None:
            return ProfileResult.fail(
                ProfileErrorCode.DUPLICATE_NAME, "This user name already exists"
            )

        profile = Profile(
            id=uuid4().hex,
            name=trimmed_name,
            password=trimmed_password,
            tdee=0,
            goal=Goal.MAINTENANCE,
            created_at=datetime.now(tz=UTC),
        )
        self._save([*profiles, profile])
        self.session.activate(profile.id)
        logger.info("Registered profile %s", profile.id)
        return ProfileResult.ok(profile)

    def login(self, name: str, password: str) -> ProfileResult:
        """Authenticate by case-insensitive name and exact password."""
        trimmed_name = name.strip()
        trimmed_password = password.strip()
        if not trimmed_name or not trimmed_password:
            return ProfileResult.fail(
                ProfileErrorCode.VALIDATION_ERROR, "Please fill in all fields"
            )

        profile = _find_by_name(self.list_profiles(), trimmed_name)
        if profile is None:
            return ProfileResult.fail(ProfileErrorCode.NOT_FOUND, "User not found")
        if profile.password != trimmed_password:
            return ProfileResult.fail(
                ProfileErrorCode.WRONG_PASSWORD, "Incorrect password"
            )

        self.session.activate(profile.id)
        return ProfileResult.ok(profile)

    def logout(self) -> None:
        """Forget the active profile; profile data is kept."""
        self.session.clear()

    def update_profile(self, partial: Mapping[str, object]) -> Profile | None:
        """Merge fields into the active profile and persist the collection.

        Returns None without writing when nobody is logged in, when the merged
        record is invalid or when a new name is empty or already taken.
        """
        active_id = self.session.active_profile_id
        if active_id is None:
            return None
        profiles = self.list_profiles()
        changes = dict(partial)
        if "name" in changes:
            name = str(changes["name"]).strip()
            others = [p for p in profiles if p.id != active_id]
            if not name or _find_by_name(others, name) is not None:
                logger.info("Rejected rename of profile %s", active_id)
                return None
            changes["name"] = name
        updated: Profile | None = None
        merged: list[Profile] = []
        for profile in profiles:
            if profile.id == active_id:
                data = profile.model_dump()
                data.update(changes)
                data["id"] = profile.id
                try:
                    updated = Profile.model_validate(data)
                except ValidationError:
                    logger.warning("Rejected invalid update of profile %s", active_id)
                    return None
                merged.append(updated)
            else:
                merged.append(profile)
        if updated is None:
            return None
        self._save(merged)
        return updated

    def complete_registration(
        self,
        sex: Sex,
        age: int,
        weight_kg: float,
        height_cm: float,
        activity_level: ActivityLevel,
    ) -> ProfileResult:
        """Store physical data and the TDEE computed from it."""
        if self.active_profile() is None:
            return ProfileResult.fail(
                ProfileErrorCode.NO_ACTIVE_PROFILE, "No active profile"
            )
        if not within_registration_bounds(age, weight_kg, height_cm):
            return ProfileResult.fail(
                ProfileErrorCode.VALIDATION_ERROR,
                "Enter valid values for age (min. 13), weight (min. 30) "
                "and height (min. 120)",
            )
        energy = compute_energy(sex, age, weight_kg, height_cm, activity_level)
        updated = self.update_profile(
            {
                "sex": sex,
                "age": age,
                "weight_kg": weight_kg,
                "height_cm": height_cm,
                "activity_level": activity_level,
                "tdee": energy.tdee,
            }
        )
        if updated is None:
            return ProfileResult.fail(
                ProfileErrorCode.NO_ACTIVE_PROFILE, "No active profile"
            )
        return ProfileResult.ok(updated)

    def set_goal(self, goal: Goal) -> Profile | None:
        """Change the active profile's goal."""
        return self.update_profile({"goal": Goal(goal)})

    def delete_profile(self, profile_id: str) -> None:
        """Remove a profile and every key scoped to it.

        Each key is removed independently; a failed removal leaves an
        unreachable orphan and does not stop the rest.
        """
        profiles = self.list_profiles()
        self._save([p for p in profiles if p.id != profile_id])
        if self.session.active_profile_id == profile_id:
            self.session.clear()

        scoped_keys = [
            *self.store.keys(intake_prefix(profile_id)),
            custom_foods_key(profile_id),
        ]
        failed = [key for key in scoped_keys if not self.store.remove(key)]
        if failed:
            logger.warning(
                "Profile %s deleted with %d orphaned keys", profile_id, len(failed)
            )
        else:
            logger.info("Deleted profile %s", profile_id)

    def _save(self, profiles: list[Profile]) -> bool:
        return self.store.write(PROFILES_KEY, list[Profile], profiles)


def _find_by_name(profiles: list[Profile], name: str) -> Profile | None:
    lowered = name.lower()
    return next((p for p in profiles if p.name.lower() == lowered), None)
