"""Tests for weekly suggestions."""

import asyncio
from uuid import uuid4

import pytest

from wellness_journal.domain.entries import EntryType
from wellness_journal.errors import ValidationError
from wellness_journal.services.entries import EntryService
from wellness_journal.services.profiles import ProfileService
from wellness_journal.services.suggestions import SuggestionService, parse_suggestion
from tests.conftest import (
    FakeExtractionClient,
    InMemoryEntryRepository,
    InMemoryProfileRepository,
)


def _service(
    client: FakeExtractionClient, repository: InMemoryEntryRepository
) -> SuggestionService:
    return SuggestionService(
        client=client,
        entry_service=EntryService(repository),
        profile_service=ProfileService(InMemoryProfileRepository()),
    )


def test_generate_needs_three_entries() -> None:
    repository = InMemoryEntryRepository()
    owner = uuid4()
    repository.add(owner, EntryType.DIET, "toast")
    client = FakeExtractionClient()

    with pytest.raises(ValidationError):
        asyncio.run(_service(client, repository).generate(owner))
    assert client.calls == []


def test_generate_parses_advice() -> None:
    repository = InMemoryEntryRepository()
    owner = uuid4()
    for content in ("run", "salad", "tired"):
        repository.add(owner, EntryType.OTHER, content)
    client = FakeExtractionClient(
        responses=[
            '```json\n{"summary": "Solid week.", "fitness_suggestions": ["Swim"],'
            ' "diet_suggestions": ["More fiber", 3], "encouragement": "Go!"}\n```'
        ]
    )

    suggestion = asyncio.run(_service(client, repository).generate(owner))

    assert suggestion.summary == "Solid week."
    assert suggestion.fitness_suggestions == ["Swim"]
    assert suggestion.diet_suggestions == ["More fiber"]
    _, messages = client.calls[0]
    assert messages[0].content.count("- [other]") == 3


def test_parse_suggestion_falls_back() -> None:
    suggestion = parse_suggestion("no json here", "zh")

    assert suggestion.summary == "继续保持记录习惯！"
    assert suggestion.fitness_suggestions == []
