"""Entry persistence service."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from wellness_journal.domain.entries import Entry, EntryDraft, EntryType
from wellness_journal.errors import EntryNotFoundError, ValidationError

MAX_LIST_LIMIT = 500


class EntryRepository(Protocol):
    """Persistence interface for journal entries."""

    def create_entry(
        self,
        owner: UUID,
        entry_type: EntryType,
        content: str,
        fields: dict[str, object],
    ) -> Entry:
        """Create an entry and return it with its store-assigned id."""

    def list_recent(self, owner: UUID, limit: int) -> list[Entry]:
        """Return the newest entries first."""

    def list_range(self, owner: UUID, start: datetime, end: datetime) -> list[Entry]:
        """Return entries created in [start, end), newest first."""

    def get_entry(self, entry_id: UUID) -> Entry | None:
        """Return an entry by id, if present."""

    def update_entry(
        self, entry_id: UUID, content: str, fields: dict[str, object]
    ) -> Entry:
        """Rewrite content and fields together and return the entry."""

    def delete_entry(self, entry_id: UUID) -> None:
        """Delete an entry."""


@dataclass
class EntryService:
    """Owner-scoped access to the entry repository."""

    repository: EntryRepository

    def create(
        self,
        owner: UUID,
        entry_type: EntryType,
        content: str,
        fields: dict[str, object] | None = None,
    ) -> Entry:
        """Persist a new entry."""
        cleaned = content.strip()
        if not cleaned:
            raise ValidationError("Entry content must not be empty")
        return self.repository.create_entry(owner, entry_type, cleaned, fields or {})

    def create_from_draft(self, owner: UUID, draft: EntryDraft) -> Entry:
        """Persist a confirmed draft."""
        return self.create(owner, draft.type, draft.content, dict(draft.fields))

    def list_recent(self, owner: UUID, limit: int = 50) -> list[Entry]:
        """Return recent entries, newest first."""
        bounded = max(1, min(limit, MAX_LIST_LIMIT))
        return self.repository.list_recent(owner, bounded)

    def list_range(self, owner: UUID, start: datetime, end: datetime) -> list[Entry]:
        """Return entries created within a time range."""
        return self.repository.list_range(owner, start, end)

    def get(self, owner: UUID, entry_id: UUID) -> Entry:
        """Return an owned entry or raise."""
        entry = self.repository.get_entry(entry_id)
        if entry is None or entry.owner != owner:
            raise EntryNotFoundError(f"Entry {entry_id} not found")
        return entry

    def update(
        self,
        owner: UUID,
        entry_id: UUID,
        content: str,
        fields: dict[str, object],
    ) -> Entry:
        """Rewrite an owned entry's content and fields."""
        self.get(owner, entry_id)
        cleaned = content.strip()
        if not cleaned:
            raise ValidationError("Entry content must not be empty")
        return self.repository.update_entry(entry_id, cleaned, fields)

    def delete(self, owner: UUID, entry_id: UUID) -> None:
        """Delete an owned entry."""
        self.get(owner, entry_id)
        self.repository.delete_entry(entry_id)
