"""Domain models for conversational extraction."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from wellness_journal.domain.entries import Entry, EntryDraft

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """One message of the rolling conversation history."""

    role: Role
    content: str


@dataclass(frozen=True)
class ExtractionResult:
    """Drafts and reply recovered from one extraction round."""

    entries: list[EntryDraft]
    reply: str


class SessionState(StrEnum):
    """Conversation session states."""

    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


@dataclass(frozen=True)
class TurnOutcome:
    """Result of handling one user utterance."""

    reply: str
    drafts: list[EntryDraft]
    state: SessionState
    committed: list[Entry] = field(default_factory=list)
    service_error: bool = False
