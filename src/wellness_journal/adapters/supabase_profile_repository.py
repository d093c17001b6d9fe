"""Supabase repository for user profiles."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

import httpx
from supabase import Client, PostgrestAPIError

from wellness_journal.domain.fields import coerce_number
from wellness_journal.domain.profiles import (
    ACTIVITY_LEVELS,
    GENDERS,
    GOALS,
    LANGUAGES,
    UserProfile,
)
from wellness_journal.errors import StoreError
from wellness_journal.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the ``profiles`` table."""

    client: Client

    def get_profile(self, owner: UUID) -> UserProfile | None:
        """Return the stored profile for a user."""
        try:
            response = (
                self.client.table("profiles")
                .select("*")
                .eq("id", str(owner))
                .limit(1)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise StoreError("Failed to load profile") from exc
        if not response.data:
            return None
        return _parse_row(owner, response.data[0])

    def upsert_profile(self, profile: UserProfile) -> None:
        """Insert or update the profile row."""
        try:
            self.client.table("profiles").upsert(
                {
                    "id": str(profile.owner),
                    "language": profile.language,
                    "timezone": profile.timezone,
                    "gender": profile.gender,
                    "age": profile.age,
                    "height_cm": profile.height_cm,
                    "weight_kg": profile.weight_kg,
                    "goal": profile.goal,
                    "activity_level": profile.activity_level,
                    "lifestyle": profile.lifestyle,
                    "tdee": profile.tdee,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            ).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise StoreError("Failed to save profile") from exc


def _parse_row(owner: UUID, row: dict[str, object]) -> UserProfile:
    age = coerce_number(row.get("age"))
    tdee = coerce_number(row.get("tdee"))
    lifestyle = row.get("lifestyle")
    timezone = row.get("timezone")
    return UserProfile(
        owner=owner,
        language=_choice(row.get("language"), LANGUAGES) or "en",
        timezone=timezone if isinstance(timezone, str) and timezone else "UTC",
        gender=_choice(row.get("gender"), GENDERS),
        age=int(age) if age is not None else None,
        height_cm=coerce_number(row.get("height_cm")),
        weight_kg=coerce_number(row.get("weight_kg")),
        goal=_choice(row.get("goal"), GOALS),
        activity_level=_choice(row.get("activity_level"), ACTIVITY_LEVELS),
        lifestyle=lifestyle if isinstance(lifestyle, str) else None,
        tdee=round(tdee) if tdee is not None else None,
    )


def _choice(value: object, allowed: tuple[str, ...]):  # type: ignore[no-untyped-def]
    return value if isinstance(value, str) and value in allowed else None
