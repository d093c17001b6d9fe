"""Domain models for statistics."""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from wellness_journal.domain.entries import EntryType


class BalanceStatus(StrEnum):
    """Classification of a day's net calories."""

    DEFICIT = "deficit"
    BALANCED = "balanced"
    SURPLUS = "surplus"


@dataclass(frozen=True)
class CalorieBalance:
    """Net calories against the profile's TDEE."""

    calories_in: float
    calories_burned: float
    tdee: int
    net: float
    status: BalanceStatus
    favorable: bool


@dataclass(frozen=True)
class EntrySummary:
    """Totals and averages over a set of entries."""

    counts: dict[EntryType, int]
    calories_in: float
    calories_burned: float
    protein_g: float
    carbs_g: float
    fat_g: float
    avg_protein_per_meal: float | None
    avg_mood: float | None
    avg_energy: float | None


@dataclass(frozen=True)
class DailySummary:
    """Today's dashboard values."""

    day: date
    summary: EntrySummary
    mood: int | None
    energy: int | None
    balance: CalorieBalance | None


@dataclass(frozen=True)
class PeriodSummary:
    """Aggregates over a week, month or all recent entries."""

    period: str
    summary: EntrySummary
    avg_mood: float | None
    avg_energy: float | None


@dataclass(frozen=True)
class DayCount:
    """Number of entries on a local calendar day."""

    day: date
    count: int


@dataclass(frozen=True)
class Insights:
    """Type distribution and recent daily activity."""

    counts: dict[EntryType, int]
    daily: list[DayCount]
