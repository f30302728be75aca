"""Result types for profile and authentication flows."""

from dataclasses import dataclass
from enum import StrEnum

from calorie_tracker.domain.models import Profile


class ProfileErrorCode(StrEnum):
    """Recoverable failures surfaced as form-level messages."""

    VALIDATION_ERROR = "validation_error"
    WEAK_PASSWORD = "weak_password"
    DUPLICATE_NAME = "duplicate_name"
    NOT_FOUND = "not_found"
    WRONG_PASSWORD = "wrong_password"
    NO_ACTIVE_PROFILE = "no_active_profile"


@dataclass(frozen=True)
class ProfileResult:
    """Tagged success/failure outcome of a profile operation."""

    profile: Profile | None = None
    error: ProfileErrorCode | None = None
    message: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None and self.profile is not None

    @classmethod
    def ok(cls, profile: Profile) -> "ProfileResult":
        return cls(profile=profile)

    @classmethod
    def fail(cls, error: ProfileErrorCode, message: str) -> "ProfileResult":
        return cls(error=error, message=message)
