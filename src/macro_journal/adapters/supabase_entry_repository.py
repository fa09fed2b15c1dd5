"""Supabase repository for meal entries."""

from dataclasses import dataclass
from datetime import date, datetime

from supabase import Client

from macro_journal.domain.meals import EntryRecord, ParsedMealData
from macro_journal.services.entries import EntryRepository

_COLUMNS = "id, user_id, date, raw_text, parsed_data, created_at"


@dataclass
class SupabaseEntryRepository(EntryRepository):
    """Supabase implementation for the entries table."""

    client: Client

    def create_entry(
        self,
        user_id: str,
        entry_date: date,
        raw_text: str,
        parsed_data: ParsedMealData,
    ) -> EntryRecord:
        """Insert an entry row and return it."""
        response = (
            self.client.table("entries")
            .insert(
                {
                    "user_id": user_id,
                    "date": entry_date.isoformat(),
                    "raw_text": raw_text,
                    "parsed_data": parsed_data.model_dump(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create entry")
        return _parse_entry(response.data[0])

    def get_entry(self, user_id: str, entry_id: int) -> EntryRecord | None:
        """Return an entry row owned by the user."""
        response = (
            self.client.table("entries")
            .select(_COLUMNS)
            .eq("id", entry_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def list_entries(
        self,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[EntryRecord]:
        """Return entries for the user, newest first."""
        query = self.client.table("entries").select(_COLUMNS).eq("user_id", user_id)
        if start is not None:
            query = query.gte("date", start.isoformat())
        if end is not None:
            query = query.lte("date", end.isoformat())
        response = query.order("created_at", desc=True).execute()
        return [_parse_entry(row) for row in response.data or []]

    def delete_entry(self, user_id: str, entry_id: int) -> bool:
        """Delete an entry owned by the user."""
        response = (
            self.client.table("entries")
            .delete()
            .eq("id", entry_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)


def _parse_entry(row: dict[str, object]) -> EntryRecord:
    created_at = row.get("created_at")
    return EntryRecord(
        id=int(row["id"]),
        user_id=str(row["user_id"]),
        entry_date=date.fromisoformat(str(row["date"])),
        raw_text=str(row.get("raw_text", "")),
        parsed_data=ParsedMealData.model_validate(row["parsed_data"], strict=False),
        created_at=datetime.fromisoformat(str(created_at)) if created_at else None,
    )
