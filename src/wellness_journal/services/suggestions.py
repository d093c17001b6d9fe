"""Weekly fitness and diet advice generated from recent entries."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from wellness_journal.domain.conversation import ChatMessage
from wellness_journal.domain.profiles import Language
from wellness_journal.errors import ValidationError
from wellness_journal.services.entries import EntryService
from wellness_journal.services.extraction import ExtractionClient
from wellness_journal.services.profiles import ProfileService, resolve_timezone
from wellness_journal.services.prompts import (
    build_suggestions_prompt,
    build_suggestions_request,
)
from wellness_journal.services.response_parser import recover_json_object

MIN_ENTRIES = 3
MAX_ENTRIES = 20

_FALLBACK_SUMMARY: dict[Language, str] = {
    "en": "Keep up the tracking habit!",
    "zh": "继续保持记录习惯！",
}
_FALLBACK_ENCOURAGEMENT: dict[Language, str] = {
    "en": "You are doing great!",
    "zh": "你做得很好！",
}


@dataclass(frozen=True)
class Suggestion:
    """Advice for the coming week."""

    summary: str
    encouragement: str
    fitness_suggestions: list[str] = field(default_factory=list)
    diet_suggestions: list[str] = field(default_factory=list)


@dataclass
class SuggestionService:
    """Asks the model for weekly advice based on recent entries."""

    client: ExtractionClient
    entry_service: EntryService
    profile_service: ProfileService

    async def generate(self, owner: UUID) -> Suggestion:
        """Generate advice; needs at least three recent entries."""
        profile = await asyncio.to_thread(self.profile_service.get, owner)
        entries = await asyncio.to_thread(
            self.entry_service.list_recent, owner, MAX_ENTRIES
        )
        if len(entries) < MIN_ENTRIES:
            raise ValidationError(
                f"At least {MIN_ENTRIES} entries are needed to generate suggestions"
            )
        now = datetime.now(tz=resolve_timezone(profile.timezone))
        raw = await self.client.complete(
            system_prompt=build_suggestions_prompt(profile.language),
            messages=[
                ChatMessage(
                    role="user",
                    content=build_suggestions_request(profile.language, entries, now),
                )
            ],
        )
        return parse_suggestion(raw, profile.language)


def parse_suggestion(raw: str, language: Language) -> Suggestion:
    """Recover a suggestion from model text, falling back to a canned one."""
    payload = recover_json_object(raw) or {}
    summary = payload.get("summary")
    encouragement = payload.get("encouragement")
    return Suggestion(
        summary=summary
        if isinstance(summary, str) and summary
        else _FALLBACK_SUMMARY.get(language, _FALLBACK_SUMMARY["en"]),
        encouragement=encouragement
        if isinstance(encouragement, str) and encouragement
        else _FALLBACK_ENCOURAGEMENT.get(language, _FALLBACK_ENCOURAGEMENT["en"]),
        fitness_suggestions=_string_list(payload.get("fitness_suggestions")),
        diet_suggestions=_string_list(payload.get("diet_suggestions")),
    )


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
