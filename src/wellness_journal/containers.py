"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from wellness_journal.adapters.httpx_extraction_client import HttpxExtractionClient
from wellness_journal.adapters.openai_extraction_client import OpenAIExtractionClient
from wellness_journal.adapters.supabase_entry_repository import SupabaseEntryRepository
from wellness_journal.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from wellness_journal.config import Settings
from wellness_journal.services.cache import InMemoryCache
from wellness_journal.services.conversations import ConversationService
from wellness_journal.services.entries import EntryService
from wellness_journal.services.extraction import ExtractionClient, ExtractionService
from wellness_journal.services.profiles import ProfileService
from wellness_journal.services.stats import StatsService
from wellness_journal.services.suggestions import SuggestionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    entry_service: EntryService
    profile_service: ProfileService
    extraction_service: ExtractionService
    conversation_service: ConversationService
    stats_service: StatsService
    suggestion_service: SuggestionService
    proxy_client: ExtractionClient
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    entry_service = EntryService(SupabaseEntryRepository(supabase_client))
    profile_service = ProfileService(SupabaseProfileRepository(supabase_client))

    openai_client = OpenAIExtractionClient.create(
        api_key=resolved_settings.openai_api_key,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        timeout=resolved_settings.extraction_timeout_seconds,
    )
    proxy_http_client: HttpxExtractionClient | None = None
    extraction_client: ExtractionClient = openai_client
    if resolved_settings.extraction_proxy_url:
        proxy_http_client = HttpxExtractionClient.create(
            proxy_url=resolved_settings.extraction_proxy_url,
            timeout=resolved_settings.extraction_timeout_seconds,
        )
        extraction_client = proxy_http_client

    extraction_service = ExtractionService(
        client=extraction_client,
        history_limit=resolved_settings.history_limit,
    )
    conversation_service = ConversationService(
        extraction_service=extraction_service,
        entry_service=entry_service,
        profile_service=profile_service,
        cache=InMemoryCache(),
        session_ttl_seconds=resolved_settings.session_ttl_seconds,
        recent_entries_limit=resolved_settings.recent_entries_limit,
    )
    stats_service = StatsService(
        entry_service=entry_service,
        profile_service=profile_service,
    )
    suggestion_service = SuggestionService(
        client=extraction_client,
        entry_service=entry_service,
        profile_service=profile_service,
    )

    async def close_resources() -> None:
        await openai_client.close()
        if proxy_http_client is not None:
            await proxy_http_client.close()

    return AppContainer(
        settings=resolved_settings,
        entry_service=entry_service,
        profile_service=profile_service,
        extraction_service=extraction_service,
        conversation_service=conversation_service,
        stats_service=stats_service,
        suggestion_service=suggestion_service,
        proxy_client=openai_client,
        close_resources=close_resources,
    )
