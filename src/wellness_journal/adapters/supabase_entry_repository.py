"""Supabase repository for journal entries."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

import httpx
from supabase import Client, PostgrestAPIError

from wellness_journal.domain.entries import Entry, EntryType
from wellness_journal.errors import StoreError
from wellness_journal.services.entries import EntryRepository

_COLUMNS = "id, user_id, type, content, parsed_data, created_at"


@dataclass
class SupabaseEntryRepository(EntryRepository):
    """Supabase implementation for the ``entries`` table."""

    client: Client

    def create_entry(
        self,
        owner: UUID,
        entry_type: EntryType,
        content: str,
        fields: dict[str, object],
    ) -> Entry:
        """Insert an entry row and return it."""
        response = _execute(
            self.client.table("entries").insert(
                {
                    "user_id": str(owner),
                    "type": str(entry_type),
                    "content": content,
                    "parsed_data": fields,
                }
            ),
            "create entry",
        )
        if not response.data:
            raise StoreError("Failed to create entry")
        return _parse_row(response.data[0])

    def list_recent(self, owner: UUID, limit: int) -> list[Entry]:
        """Return the newest entries for a user."""
        response = _execute(
            self.client.table("entries")
            .select(_COLUMNS)
            .eq("user_id", str(owner))
            .order("created_at", desc=True)
            .limit(limit),
            "list entries",
        )
        return [_parse_row(row) for row in response.data or []]

    def list_range(self, owner: UUID, start: datetime, end: datetime) -> list[Entry]:
        """Return entries created in [start, end), newest first."""
        response = _execute(
            self.client.table("entries")
            .select(_COLUMNS)
            .eq("user_id", str(owner))
            .gte("created_at", start.isoformat())
            .lt("created_at", end.isoformat())
            .order("created_at", desc=True),
            "list entries",
        )
        return [_parse_row(row) for row in response.data or []]

    def get_entry(self, entry_id: UUID) -> Entry | None:
        """Return an entry by id."""
        response = _execute(
            self.client.table("entries")
            .select(_COLUMNS)
            .eq("id", str(entry_id))
            .limit(1),
            "get entry",
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def update_entry(
        self, entry_id: UUID, content: str, fields: dict[str, object]
    ) -> Entry:
        """Rewrite content and parsed data of an entry."""
        response = _execute(
            self.client.table("entries")
            .update({"content": content, "parsed_data": fields})
            .eq("id", str(entry_id)),
            "update entry",
        )
        if not response.data:
            raise StoreError(f"Failed to update entry {entry_id}")
        return _parse_row(response.data[0])

    def delete_entry(self, entry_id: UUID) -> None:
        """Delete an entry row."""
        _execute(
            self.client.table("entries").delete().eq("id", str(entry_id)),
            "delete entry",
        )


def _execute(query, action: str):  # type: ignore[no-untyped-def]
    try:
        return query.execute()
    except (PostgrestAPIError, httpx.HTTPError) as exc:
        raise StoreError(f"Failed to {action}") from exc


def _parse_row(row: dict[str, object]) -> Entry:
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else datetime.now(tz=UTC)
    )
    parsed_data = row.get("parsed_data")
    return Entry(
        id=UUID(str(row["id"])),
        owner=UUID(str(row["user_id"])),
        type=EntryType.coerce(row.get("type")) or EntryType.OTHER,
        content=str(row.get("content") or ""),
        fields=parsed_data if isinstance(parsed_data, dict) else {},
        created_at=created_at,
    )
