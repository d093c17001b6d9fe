"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from wellness_journal.config import Settings
from wellness_journal.containers import AppContainer
from wellness_journal.domain.conversation import ChatMessage
from wellness_journal.domain.entries import Entry, EntryType
from wellness_journal.domain.profiles import UserProfile
from wellness_journal.errors import ServiceUnavailable, StoreError
from wellness_journal.services.cache import InMemoryCache
from wellness_journal.services.conversations import ConversationService
from wellness_journal.services.entries import EntryRepository, EntryService
from wellness_journal.services.extraction import ExtractionClient, ExtractionService
from wellness_journal.services.profiles import ProfileRepository, ProfileService
from wellness_journal.services.stats import StatsService
from wellness_journal.services.suggestions import SuggestionService


@dataclass
class InMemoryEntryRepository(EntryRepository):
    """In-memory entry repository for tests."""

    entries: dict[UUID, Entry] = field(default_factory=dict)
    fail_after: int | None = None
    created: int = 0

    def add(
        self,
        owner: UUID,
        entry_type: EntryType,
        content: str,
        fields: dict[str, object] | None = None,
        created_at: datetime | None = None,
    ) -> Entry:
        entry = Entry(
            id=uuid4(),
            owner=owner,
            type=entry_type,
            content=content,
            fields=fields or {},
            created_at=created_at or datetime.now(tz=UTC),
        )
        self.entries[entry.id] = entry
        return entry

    def create_entry(
        self,
        owner: UUID,
        entry_type: EntryType,
        content: str,
        fields: dict[str, object],
    ) -> Entry:
        if self.fail_after is not None and self.created >= self.fail_after:
            raise StoreError("store unavailable")
        self.created += 1
        return self.add(owner, entry_type, content, fields)

    def list_recent(self, owner: UUID, limit: int) -> list[Entry]:
        return self._owned(owner)[:limit]

    def list_range(self, owner: UUID, start: datetime, end: datetime) -> list[Entry]:
        return [
            entry for entry in self._owned(owner) if start <= entry.created_at < end
        ]

    def get_entry(self, entry_id: UUID) -> Entry | None:
        return self.entries.get(entry_id)

    def update_entry(
        self, entry_id: UUID, content: str, fields: dict[str, object]
    ) -> Entry:
        updated = replace(self.entries[entry_id], content=content, fields=fields)
        self.entries[entry_id] = updated
        return updated

    def delete_entry(self, entry_id: UUID) -> None:
        self.entries.pop(entry_id, None)

    def _owned(self, owner: UUID) -> list[Entry]:
        owned = [entry for entry in self.entries.values() if entry.owner == owner]
        return sorted(owned, key=lambda entry: entry.created_at, reverse=True)


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[UUID, UserProfile] = field(default_factory=dict)

    def get_profile(self, owner: UUID) -> UserProfile | None:
        return self.profiles.get(owner)

    def upsert_profile(self, profile: UserProfile) -> None:
        self.profiles[profile.owner] = profile


@dataclass
class FakeExtractionClient(ExtractionClient):
    """Fake extraction client returning scripted responses in order."""

    responses: list[str] = field(default_factory=list)
    fail: bool = False
    delay: float = 0.0
    calls: list[tuple[str, list[ChatMessage]]] = field(default_factory=list)

    async def complete(
        self, *, system_prompt: str, messages: list[ChatMessage]
    ) -> str:
        self.calls.append((system_prompt, list(messages)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ServiceUnavailable("extraction offline")
        if not self.responses:
            return '{"entries": [], "reply": "OK"}'
        return self.responses.pop(0)

    async def close(self) -> None:
        return None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
        environment="test",
    )


@pytest.fixture
def entry_repository() -> InMemoryEntryRepository:
    return InMemoryEntryRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def extraction_client() -> FakeExtractionClient:
    return FakeExtractionClient()


@pytest.fixture
def container(
    settings: Settings,
    entry_repository: InMemoryEntryRepository,
    profile_repository: InMemoryProfileRepository,
    extraction_client: FakeExtractionClient,
) -> AppContainer:
    entry_service = EntryService(entry_repository)
    profile_service = ProfileService(profile_repository)
    extraction_service = ExtractionService(client=extraction_client)
    conversation_service = ConversationService(
        extraction_service=extraction_service,
        entry_service=entry_service,
        profile_service=profile_service,
        cache=InMemoryCache(),
    )

    async def close_resources() -> None:
        await extraction_client.close()

    return AppContainer(
        settings=settings,
        entry_service=entry_service,
        profile_service=profile_service,
        extraction_service=extraction_service,
        conversation_service=conversation_service,
        stats_service=StatsService(
            entry_service=entry_service, profile_service=profile_service
        ),
        suggestion_service=SuggestionService(
            client=extraction_client,
            entry_service=entry_service,
            profile_service=profile_service,
        ),
        proxy_client=extraction_client,
        close_resources=close_resources,
    )
