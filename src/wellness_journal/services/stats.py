"""Aggregation of journal entries into dashboard statistics."""

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from wellness_journal.domain.entries import Entry, EntryType
from wellness_journal.domain.fields import coerce_number, coerce_score
from wellness_journal.domain.profiles import UserProfile
from wellness_journal.domain.stats import (
    BalanceStatus,
    CalorieBalance,
    DailySummary,
    DayCount,
    EntrySummary,
    Insights,
    PeriodSummary,
)
from wellness_journal.errors import ValidationError
from wellness_journal.services.entries import EntryService
from wellness_journal.services.profiles import ProfileService, resolve_timezone

BALANCE_THRESHOLD = 200
PLACEHOLDER = "-"
PERIOD_DAYS = {"week": 7, "month": 30}
ALL_TIME_LIMIT = 200
INSIGHTS_LIMIT = 100
INSIGHTS_DAYS = 7


def partition_by_type(entries: list[Entry]) -> dict[EntryType, list[Entry]]:
    """Group entries by type; every type is present, possibly empty."""
    groups: dict[EntryType, list[Entry]] = {entry_type: [] for entry_type in EntryType}
    for entry in entries:
        groups[entry.type].append(entry)
    return groups


def type_counts(entries: list[Entry]) -> dict[EntryType, int]:
    """Return the number of entries per type."""
    return {
        entry_type: len(group)
        for entry_type, group in partition_by_type(entries).items()
    }


def sum_field(entries: list[Entry], key: str) -> float:
    """Sum a numeric field, counting missing or non-numeric values as 0."""
    return sum(coerce_number(entry.fields.get(key)) or 0.0 for entry in entries)


def average_score(entries: list[Entry], key: str) -> float | None:
    """Average a 1-10 score field over entries that carry a valid value."""
    scores = [
        score
        for entry in entries
        if (score := coerce_score(entry.fields.get(key))) is not None
    ]
    if not scores:
        return None
    return sum(scores) / len(scores)


def round_for_display(value: float | None) -> int | None:
    """Round half up to the nearest integer."""
    if value is None:
        return None
    return math.floor(value + 0.5)


def round_for_report(value: float | None) -> float | None:
    """Round to one decimal place."""
    if value is None:
        return None
    return math.floor(value * 10 + 0.5) / 10


def format_average(value: float | None) -> str:
    """Render an average, using a placeholder when undefined."""
    if value is None:
        return PLACEHOLDER
    return f"{value:g}"


def summarize_entries(entries: list[Entry]) -> EntrySummary:
    """Compute per-type counts, nutrition totals and score averages."""
    groups = partition_by_type(entries)
    diet = groups[EntryType.DIET]
    fitness = groups[EntryType.FITNESS]
    protein = sum_field(diet, "protein")
    return EntrySummary(
        counts={entry_type: len(group) for entry_type, group in groups.items()},
        calories_in=sum_field(diet, "calories"),
        calories_burned=sum_field(fitness, "calories_burned"),
        protein_g=protein,
        carbs_g=sum_field(diet, "carbs"),
        fat_g=sum_field(diet, "fat"),
        avg_protein_per_meal=protein / len(diet) if diet else None,
        avg_mood=average_score(groups[EntryType.MOOD], "mood_score"),
        avg_energy=average_score(groups[EntryType.ENERGY], "energy_level"),
    )


def calorie_balance(
    calories_in: float, calories_burned: float, profile: UserProfile | None
) -> CalorieBalance | None:
    """Classify net calories against the profile's TDEE, if known."""
    if profile is None or profile.tdee is None:
        return None
    net = calories_in - profile.tdee - calories_burned
    if net < -BALANCE_THRESHOLD:
        status = BalanceStatus.DEFICIT
    elif net > BALANCE_THRESHOLD:
        status = BalanceStatus.SURPLUS
    else:
        status = BalanceStatus.BALANCED
    goal = profile.goal or "maintain"
    if status == BalanceStatus.DEFICIT:
        favorable = goal == "lose"
    elif status == BalanceStatus.SURPLUS:
        favorable = goal == "gain"
    else:
        favorable = True
    return CalorieBalance(
        calories_in=calories_in,
        calories_burned=calories_burned,
        tdee=profile.tdee,
        net=net,
        status=status,
        favorable=favorable,
    )


def local_day(entry: Entry, tz: ZoneInfo) -> date:
    """Return the local calendar date an entry belongs to."""
    created = entry.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return created.astimezone(tz).date()


def entries_for_day(entries: list[Entry], day: date, tz: ZoneInfo) -> list[Entry]:
    """Filter entries to one local calendar day."""
    return [entry for entry in entries if local_day(entry, tz) == day]


def daily_counts(
    entries: list[Entry], tz: ZoneInfo, end_day: date, days: int = INSIGHTS_DAYS
) -> list[DayCount]:
    """Count entries per local day for the ``days`` days ending on ``end_day``."""
    counts: dict[date, int] = {}
    for entry in entries:
        day = local_day(entry, tz)
        counts[day] = counts.get(day, 0) + 1
    start = end_day - timedelta(days=days - 1)
    return [
        DayCount(day=day, count=counts.get(day, 0))
        for day in (start + timedelta(days=offset) for offset in range(days))
    ]


@dataclass
class StatsService:
    """Fetches entry windows in the user's timezone and aggregates them."""

    entry_service: EntryService
    profile_service: ProfileService

    def get_today(self, owner: UUID) -> DailySummary:
        """Return today's summary and calorie balance."""
        profile = self.profile_service.find(owner)
        tz = resolve_timezone(profile.timezone if profile else None)
        now = datetime.now(tz=tz)
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        end = start + timedelta(days=1)
        entries = entries_for_day(
            self.entry_service.list_range(
                owner, start.astimezone(UTC), end.astimezone(UTC)
            ),
            start.date(),
            tz,
        )
        summary = summarize_entries(entries)
        return DailySummary(
            day=start.date(),
            summary=summary,
            mood=round_for_display(summary.avg_mood),
            energy=round_for_display(summary.avg_energy),
            balance=calorie_balance(
                summary.calories_in, summary.calories_burned, profile
            ),
        )

    def get_period(self, owner: UUID, period: str) -> PeriodSummary:
        """Return aggregates for ``week``, ``month`` or ``all``."""
        if period == "all":
            entries = self.entry_service.list_recent(owner, ALL_TIME_LIMIT)
        elif period in PERIOD_DAYS:
            end = datetime.now(tz=UTC)
            start = end - timedelta(days=PERIOD_DAYS[period])
            entries = self.entry_service.list_range(
                owner, start, end + timedelta(seconds=1)
            )
        else:
            raise ValidationError(f"Unknown period: {period}")
        summary = summarize_entries(entries)
        return PeriodSummary(
            period=period,
            summary=summary,
            avg_mood=round_for_report(summary.avg_mood),
            avg_energy=round_for_report(summary.avg_energy),
        )

    def get_insights(self, owner: UUID) -> Insights:
        """Return type counts and the last week's daily entry counts."""
        profile = self.profile_service.find(owner)
        tz = resolve_timezone(profile.timezone if profile else None)
        entries = self.entry_service.list_recent(owner, INSIGHTS_LIMIT)
        today = datetime.now(tz=tz).date()
        return Insights(
            counts=type_counts(entries),
            daily=daily_counts(entries, tz, today),
        )
