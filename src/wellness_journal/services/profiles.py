"""Profile service and TDEE estimation."""

import math
from dataclasses import dataclass, fields, replace
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from wellness_journal.domain.profiles import ActivityLevel, Gender, UserProfile
from wellness_journal.errors import ValidationError

ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
}

_PROFILE_FIELDS = {item.name for item in fields(UserProfile)} - {"owner", "tdee"}


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, owner: UUID) -> UserProfile | None:
        """Return the stored profile, if present."""

    def upsert_profile(self, profile: UserProfile) -> None:
        """Insert or replace the profile row."""


def compute_bmr(gender: Gender, age: int, height_cm: float, weight_kg: float) -> float:
    """Mifflin-St Jeor basal metabolic rate."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + (5 if gender == "male" else -161)


def compute_tdee(profile: UserProfile) -> int | None:
    """Return the TDEE when every determining field is present."""
    if (
        profile.gender is None
        or profile.age is None
        or profile.height_cm is None
        or profile.weight_kg is None
        or profile.activity_level is None
    ):
        return None
    bmr = compute_bmr(profile.gender, profile.age, profile.height_cm, profile.weight_kg)
    return math.floor(bmr * ACTIVITY_MULTIPLIERS[profile.activity_level] + 0.5)


@dataclass
class ProfileService:
    """Service for reading and saving user profiles."""

    repository: ProfileRepository

    def get(self, owner: UUID) -> UserProfile:
        """Return the stored profile or a default one."""
        return self.repository.get_profile(owner) or UserProfile(owner=owner)

    def find(self, owner: UUID) -> UserProfile | None:
        """Return the stored profile, if any."""
        return self.repository.get_profile(owner)

    def save(self, owner: UUID, changes: dict[str, object]) -> UserProfile:
        """Merge a partial update, recompute TDEE and persist."""
        unknown = set(changes) - _PROFILE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown profile fields: {sorted(unknown)}")
        timezone = changes.get("timezone")
        if timezone is not None and not is_valid_timezone(str(timezone)):
            raise ValidationError(f"Unknown timezone: {timezone}")
        merged = replace(self.get(owner), **changes)
        profile = replace(merged, tdee=compute_tdee(merged))
        self.repository.upsert_profile(profile)
        return profile


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Return the named zone, falling back to UTC for unknown names."""
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def is_valid_timezone(name: str) -> bool:
    """Return True when the name is a known IANA zone."""
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True
