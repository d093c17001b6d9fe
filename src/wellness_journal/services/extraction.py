"""Extraction service: prompt assembly and one round-trip to the model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from wellness_journal.domain.conversation import ChatMessage, ExtractionResult
from wellness_journal.domain.entries import Entry, EntryType
from wellness_journal.domain.profiles import Language
from wellness_journal.errors import ValidationError
from wellness_journal.services.prompts import build_system_prompt
from wellness_journal.services.response_parser import parse_extraction_response

DEFAULT_HISTORY_LIMIT = 10


class ExtractionClient(Protocol):
    """Interface for the external language-understanding service."""

    async def complete(
        self, *, system_prompt: str, messages: list[ChatMessage]
    ) -> str:
        """Return the raw response text; raise ServiceUnavailable on failure."""


def cap_history(history: list[ChatMessage], limit: int) -> list[ChatMessage]:
    """Return the most recent ``limit`` messages."""
    if limit <= 0:
        return []
    return list(history[-limit:])


@dataclass
class ExtractionService:
    """Runs extraction rounds against the configured client."""

    client: ExtractionClient
    history_limit: int = DEFAULT_HISTORY_LIMIT

    async def extract(
        self,
        history: list[ChatMessage],
        *,
        language: Language,
        recent_entries: list[Entry],
        now: datetime,
    ) -> ExtractionResult:
        """Send the capped history and parse the reply into drafts."""
        if not history or history[-1].role != "user":
            raise ValidationError("History must end with a user message")
        messages = cap_history(history, self.history_limit)
        system_prompt = build_system_prompt(language, recent_entries, now)
        raw = await self.client.complete(system_prompt=system_prompt, messages=messages)
        return parse_extraction_response(
            raw, utterance=history[-1].content, language=language
        )

    async def reextract(
        self,
        content: str,
        entry_type: EntryType,
        *,
        language: Language,
        now: datetime,
    ) -> dict[str, object] | None:
        """Extract fresh fields for an edited entry's content."""
        result = await self.extract(
            [ChatMessage(role="user", content=content)],
            language=language,
            recent_entries=[],
            now=now,
        )
        for draft in result.entries:
            if draft.type == entry_type:
                return dict(draft.fields)
        if result.entries:
            return dict(result.entries[0].fields)
        return None
