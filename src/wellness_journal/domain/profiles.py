"""Domain models for user profiles."""

from dataclasses import dataclass
from typing import Literal
from uuid import UUID

Language = Literal["en", "zh"]
Gender = Literal["male", "female"]
Goal = Literal["lose", "maintain", "gain"]
ActivityLevel = Literal["sedentary", "light", "moderate", "active"]

LANGUAGES: tuple[Language, ...] = ("en", "zh")
GENDERS: tuple[Gender, ...] = ("male", "female")
GOALS: tuple[Goal, ...] = ("lose", "maintain", "gain")
ACTIVITY_LEVELS: tuple[ActivityLevel, ...] = (
    "sedentary",
    "light",
    "moderate",
    "active",
)


@dataclass(frozen=True)
class UserProfile:
    """Demographics, goal and preferences for one user."""

    owner: UUID
    language: Language = "en"
    timezone: str = "UTC"
    gender: Gender | None = None
    age: int | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    goal: Goal | None = None
    activity_level: ActivityLevel | None = None
    lifestyle: str | None = None
    tdee: int | None = None
