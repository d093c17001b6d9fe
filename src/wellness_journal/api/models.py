"""Pydantic request models for the HTTP API."""

from typing import Literal

from pydantic import BaseModel, Field

from wellness_journal.domain.entries import EntryType


class ProxyMessage(BaseModel):
    """One conversation message sent through the AI proxy."""

    role: Literal["user", "assistant"]
    content: str


class AIProxyRequest(BaseModel):
    """Proxy payload; ``userMessage`` is the legacy single-turn form."""

    system_prompt: str = Field(alias="systemPrompt")
    messages: list[ProxyMessage] | None = None
    user_message: str | None = Field(default=None, alias="userMessage")


class MessageRequest(BaseModel):
    """A user utterance for a conversation session."""

    text: str


class EntryCreateRequest(BaseModel):
    """Manual entry creation."""

    type: EntryType
    content: str
    fields: dict[str, object] = Field(default_factory=dict)


class EntryUpdateRequest(BaseModel):
    """Entry edit; content and fields are rewritten together."""

    content: str
    fields: dict[str, object] | None = None
    reextract: bool = False


class ProfileUpdateRequest(BaseModel):
    """Partial profile update."""

    language: Literal["en", "zh"] | None = None
    timezone: str | None = None
    gender: Literal["male", "female"] | None = None
    age: int | None = Field(default=None, ge=1, le=120)
    height_cm: float | None = Field(default=None, gt=0, le=300)
    weight_kg: float | None = Field(default=None, gt=0, le=500)
    goal: Literal["lose", "maintain", "gain"] | None = None
    activity_level: Literal["sedentary", "light", "moderate", "active"] | None = None
    lifestyle: str | None = None
