"""Tests for owner-scoped entry access."""

from uuid import uuid4

import pytest

from wellness_journal.domain.entries import EntryDraft, EntryType
from wellness_journal.errors import EntryNotFoundError, ValidationError
from wellness_journal.services.entries import EntryService
from tests.conftest import InMemoryEntryRepository


def test_create_and_list_recent() -> None:
    repository = InMemoryEntryRepository()
    service = EntryService(repository)
    owner = uuid4()

    service.create(owner, EntryType.DIET, "  toast  ", {"calories": 120})
    service.create_from_draft(owner, EntryDraft(type=EntryType.MOOD, content="fine"))
    service.create(uuid4(), EntryType.DIET, "someone else")

    entries = service.list_recent(owner)

    assert len(entries) == 2
    assert {entry.content for entry in entries} == {"toast", "fine"}


def test_create_rejects_empty_content() -> None:
    service = EntryService(InMemoryEntryRepository())

    with pytest.raises(ValidationError):
        service.create(uuid4(), EntryType.OTHER, "   ")


def test_list_recent_clamps_limit() -> None:
    repository = InMemoryEntryRepository()
    service = EntryService(repository)
    owner = uuid4()
    for index in range(3):
        repository.add(owner, EntryType.OTHER, str(index))

    assert len(service.list_recent(owner, 0)) == 1
    assert len(service.list_recent(owner, 10_000)) == 3


def test_update_and_delete_are_owner_scoped() -> None:
    repository = InMemoryEntryRepository()
    service = EntryService(repository)
    owner = uuid4()
    entry = repository.add(owner, EntryType.DIET, "rice", {"calories": 200})

    updated = service.update(owner, entry.id, "rice and beans", {"calories": 350})
    assert updated.content == "rice and beans"
    assert updated.fields == {"calories": 350}

    with pytest.raises(EntryNotFoundError):
        service.delete(uuid4(), entry.id)

    service.delete(owner, entry.id)
    assert repository.entries == {}
    with pytest.raises(EntryNotFoundError):
        service.get(owner, entry.id)
