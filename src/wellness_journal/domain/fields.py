"""Typed views over the open ``fields`` mapping of an entry.

Values arrive from model output and from the store as loosely typed JSON.
Every view coerces what it can and drops the rest, so reading a field never
raises: a missing, non-numeric or out-of-range value is simply ``None``.
"""

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from wellness_journal.domain.entries import EntryType

SCORE_MIN = 1
SCORE_MAX = 10

_INTENSITY_ALIASES = {
    "low": "low",
    "medium": "medium",
    "moderate": "medium",
    "high": "high",
    "低": "low",
    "中": "medium",
    "高": "high",
}


def coerce_number(value: object) -> float | None:
    """Return a finite float for numeric-looking input, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_score(value: object) -> int | None:
    """Return an integer score within 1-10, else None."""
    number = coerce_number(value)
    if number is None:
        return None
    score = math.floor(number + 0.5)
    if SCORE_MIN <= score <= SCORE_MAX:
        return score
    return None


def _coerce_text(value: object) -> str | None:
    if value is None or isinstance(value, dict | list):
        return None
    text = str(value).strip()
    return text or None


class _FieldView(BaseModel):
    model_config = ConfigDict(extra="ignore")


class FitnessFields(_FieldView):
    """Fitness entry fields."""

    exercise: str | None = None
    duration: float | None = None
    calories_burned: float | None = None
    intensity: Literal["low", "medium", "high"] | None = None

    @field_validator("exercise", mode="before")
    @classmethod
    def _text(cls, value: object) -> str | None:
        return _coerce_text(value)

    @field_validator("duration", "calories_burned", mode="before")
    @classmethod
    def _number(cls, value: object) -> float | None:
        return coerce_number(value)

    @field_validator("intensity", mode="before")
    @classmethod
    def _intensity(cls, value: object) -> str | None:
        if not isinstance(value, str):
            return None
        return _INTENSITY_ALIASES.get(value.strip().lower())


class DietFields(_FieldView):
    """Diet entry fields; macros in grams."""

    food: str | None = None
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None

    @field_validator("food", mode="before")
    @classmethod
    def _text(cls, value: object) -> str | None:
        return _coerce_text(value)

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _number(cls, value: object) -> float | None:
        return coerce_number(value)


class MoodFields(_FieldView):
    """Mood entry fields."""

    mood_score: int | None = None
    mood_keywords: list[str] = []

    @field_validator("mood_score", mode="before")
    @classmethod
    def _score(cls, value: object) -> int | None:
        return coerce_score(value)

    @field_validator("mood_keywords", mode="before")
    @classmethod
    def _keywords(cls, value: object) -> list[str]:
        if isinstance(value, str):
            value = [part for part in value.replace("，", ",").split(",")]
        if not isinstance(value, list):
            return []
        keywords = [_coerce_text(item) for item in value]
        return [keyword for keyword in keywords if keyword]


class EnergyFields(_FieldView):
    """Energy entry fields."""

    energy_level: int | None = None
    reason: str | None = None

    @field_validator("energy_level", mode="before")
    @classmethod
    def _score(cls, value: object) -> int | None:
        return coerce_score(value)

    @field_validator("reason", mode="before")
    @classmethod
    def _text(cls, value: object) -> str | None:
        return _coerce_text(value)


class OtherFields(_FieldView):
    """Entries of type ``other`` carry no recognized fields."""


FieldView = FitnessFields | DietFields | MoodFields | EnergyFields | OtherFields

_VIEWS: dict[EntryType, type[_FieldView]] = {
    EntryType.FITNESS: FitnessFields,
    EntryType.DIET: DietFields,
    EntryType.MOOD: MoodFields,
    EntryType.ENERGY: EnergyFields,
    EntryType.OTHER: OtherFields,
}


def view_fields(entry_type: EntryType, raw: object) -> FieldView:
    """Return the typed view of a raw fields mapping."""
    data = raw if isinstance(raw, dict) else {}
    return _VIEWS[entry_type].model_validate(data)


def normalize_fields(entry_type: EntryType, raw: object) -> dict[str, object]:
    """Coerce recognized keys of a raw fields mapping, keeping unknown keys.

    A recognized key whose value coerces to nothing is dropped.
    """
    data = (
        {str(key): value for key, value in raw.items()}
        if isinstance(raw, dict)
        else {}
    )
    coerced = view_fields(entry_type, data).model_dump()
    normalized: dict[str, object] = {}
    for key, value in data.items():
        if key not in coerced:
            normalized[key] = value
        elif coerced[key] is not None and coerced[key] != []:
            normalized[key] = coerced[key]
    return normalized
