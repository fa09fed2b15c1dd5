"""Supabase repository for user profiles."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from macro_journal.domain.profiles import UserProfile
from macro_journal.services.profiles import ProfileRepository

_GOAL_COLUMNS = (
    "daily_goal_calories",
    "daily_goal_protein",
    "daily_goal_carbs",
    "daily_goal_fat",
)


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the profiles table."""

    client: Client

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the profile row keyed by the user id."""
        response = (
            self.client.table("profiles")
            .select("*")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def create_profile(self, user_id: str, name: str | None = None) -> UserProfile:
        """Insert a profile row and return it."""
        response = (
            self.client.table("profiles").insert({"id": user_id, "name": name}).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create profile")
        return _parse_profile(response.data[0])

    def update_profile(
        self, user_id: str, changes: dict[str, object]
    ) -> UserProfile | None:
        """Update the given columns and return the stored row."""
        response = (
            self.client.table("profiles")
            .update({**changes, "updated_at": datetime.now(tz=UTC).isoformat()})
            .eq("id", user_id)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])


def _parse_profile(row: dict[str, object]) -> UserProfile:
    goals = {
        column: int(row[column]) if row.get(column) is not None else None
        for column in _GOAL_COLUMNS
    }
    name = row.get("name")
    return UserProfile(
        user_id=str(row["id"]),
        name=str(name) if name is not None else None,
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
        **goals,
    )


def _parse_timestamp(value: object) -> datetime | None:
    return datetime.fromisoformat(str(value)) if value else None
