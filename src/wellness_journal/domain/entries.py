"""Domain models for journal entries."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class EntryType(StrEnum):
    """Closed set of entry categories."""

    FITNESS = "fitness"
    DIET = "diet"
    MOOD = "mood"
    ENERGY = "energy"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: object) -> "EntryType | None":
        """Return the matching type for a raw value, or None."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


@dataclass(frozen=True)
class Entry:
    """A persisted structured observation."""

    id: UUID
    owner: UUID
    type: EntryType
    content: str
    fields: dict[str, object]
    created_at: datetime


@dataclass(frozen=True)
class EntryDraft:
    """An unconfirmed entry produced by one extraction round."""

    type: EntryType
    content: str
    fields: dict[str, object] = field(default_factory=dict)
