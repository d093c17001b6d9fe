"""Conversation session state machine for entry extraction."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from wellness_journal.domain.conversation import (
    ChatMessage,
    SessionState,
    TurnOutcome,
)
from wellness_journal.domain.entries import Entry, EntryDraft
from wellness_journal.domain.profiles import Language
from wellness_journal.errors import (
    ServiceUnavailable,
    SessionBusyError,
    SessionNotFoundError,
    ValidationError,
)
from wellness_journal.services.cache import Cache
from wellness_journal.services.entries import EntryService
from wellness_journal.services.extraction import ExtractionService
from wellness_journal.services.profiles import ProfileService, resolve_timezone

logger = logging.getLogger(__name__)

UNAVAILABLE_REPLY: dict[Language, str] = {
    "en": "The assistant is temporarily unavailable. Please try again.",
    "zh": "服务暂时不可用，请稍后再试。",
}


def _local_now(tz: ZoneInfo) -> datetime:
    return datetime.now(tz=tz)


@dataclass
class ConversationSession:
    """In-memory state of one UI conversation.

    Holds the rolling history and the drafts staged by the latest extraction
    round. At most one round runs at a time; a second submission while one
    is in flight is rejected with ``SessionBusyError``.
    """

    id: UUID
    owner: UUID
    extraction_service: ExtractionService
    entry_service: EntryService
    language: Language = "en"
    timezone: str = "UTC"
    history: list[ChatMessage] = field(default_factory=list)
    staged: list[EntryDraft] = field(default_factory=list)
    recent_entries: list[Entry] = field(default_factory=list)
    recent_limit: int = 10
    clock: Callable[[ZoneInfo], datetime] = _local_now
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def state(self) -> SessionState:
        """Return the current session state."""
        if self.staged:
            return SessionState.AWAITING_CONFIRMATION
        return SessionState.IDLE

    @property
    def busy(self) -> bool:
        """Return True while an extraction round or commit is in flight."""
        return self._lock.locked()

    async def send(self, utterance: str) -> TurnOutcome:
        """Handle one user utterance."""
        text = utterance.strip()
        if not text:
            raise ValidationError("Message must not be empty")
        if self.busy:
            raise SessionBusyError("A message is already being processed")

        async with self._lock:
            self.history.append(ChatMessage(role="user", content=text))
            try:
                result = await self.extraction_service.extract(
                    self.history,
                    language=self.language,
                    recent_entries=self.recent_entries,
                    now=self.clock(resolve_timezone(self.timezone)),
                )
            except ServiceUnavailable:
                logger.warning(
                    "Extraction service unavailable",
                    exc_info=True,
                    extra={"session_id": str(self.id)},
                )
                return TurnOutcome(
                    reply=UNAVAILABLE_REPLY.get(self.language, UNAVAILABLE_REPLY["en"]),
                    drafts=list(self.staged),
                    state=self.state,
                    service_error=True,
                )

            if result.reply:
                self.history.append(ChatMessage(role="assistant", content=result.reply))

            if result.entries:
                # New drafts replace whatever was staged.
                self.staged = list(result.entries)
                return TurnOutcome(
                    reply=result.reply, drafts=list(self.staged), state=self.state
                )

            committed: list[Entry] = []
            if self.staged:
                # Zero drafts while awaiting confirmation reads as "yes".
                committed = await self._commit()
            return TurnOutcome(
                reply=result.reply,
                drafts=list(self.staged),
                state=self.state,
                committed=committed,
            )

    async def confirm(self) -> list[Entry]:
        """Persist every staged draft, in order."""
        if self.busy:
            raise SessionBusyError("A message is already being processed")
        async with self._lock:
            return await self._commit()

    def cancel(self) -> None:
        """Discard staged drafts without persisting them."""
        if self.busy:
            raise SessionBusyError("A message is already being processed")
        self.staged = []

    async def _commit(self) -> list[Entry]:
        committed: list[Entry] = []
        try:
            while self.staged:
                entry = await asyncio.to_thread(
                    self.entry_service.create_from_draft, self.owner, self.staged[0]
                )
                # Drop each draft only once stored so a retry never duplicates it.
                self.staged.pop(0)
                committed.append(entry)
        finally:
            if committed:
                self.recent_entries = (
                    list(reversed(committed)) + self.recent_entries
                )[: self.recent_limit]
                logger.info(
                    "Committed staged entries",
                    extra={"session_id": str(self.id), "count": len(committed)},
                )
        return committed


@dataclass
class ConversationService:
    """Opens and looks up live conversation sessions."""

    extraction_service: ExtractionService
    entry_service: EntryService
    profile_service: ProfileService
    cache: Cache
    session_ttl_seconds: int = 3600
    recent_entries_limit: int = 10

    async def open_session(self, owner: UUID) -> ConversationSession:
        """Start a session seeded with the user's profile and recent entries."""
        profile = await asyncio.to_thread(self.profile_service.get, owner)
        recent = await asyncio.to_thread(
            self.entry_service.list_recent, owner, self.recent_entries_limit
        )
        session = ConversationSession(
            id=uuid4(),
            owner=owner,
            extraction_service=self.extraction_service,
            entry_service=self.entry_service,
            language=profile.language,
            timezone=profile.timezone,
            recent_entries=recent,
            recent_limit=self.recent_entries_limit,
        )
        self.cache.set(_cache_key(session.id), session, self.session_ttl_seconds)
        logger.info(
            "Opened conversation session",
            extra={"session_id": str(session.id), "user_id": str(owner)},
        )
        return session

    def get_session(self, session_id: UUID, owner: UUID) -> ConversationSession:
        """Return a live session owned by the user and refresh its TTL."""
        key = _cache_key(session_id)
        session = self.cache.get(key)
        if not isinstance(session, ConversationSession) or session.owner != owner:
            raise SessionNotFoundError(f"Session {session_id} not found")
        self.cache.set(key, session, self.session_ttl_seconds)
        return session

    def close_session(self, session_id: UUID, owner: UUID) -> None:
        """Forget a session; staged drafts are discarded."""
        self.get_session(session_id, owner)
        self.cache.delete(_cache_key(session_id))


def _cache_key(session_id: UUID) -> str:
    return f"conversation:{session_id}"
