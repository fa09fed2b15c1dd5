"""Supabase repository for validation events."""

from dataclasses import dataclass

from supabase import Client

from macro_journal.services.monitoring import ValidationEventRepository


@dataclass
class SupabaseValidationEventRepository(ValidationEventRepository):
    """Supabase-backed validation event repository."""

    client: Client

    def create_event(  # noqa: PLR0913
        self,
        user_id: str | None,
        stage: str,
        outcome: str,
        errors: list[str],
        warnings: list[str],
        rule: str | None,
    ) -> None:
        """Create a validation event row."""
        self.client.table("validation_events").insert(
            {
                "user_id": user_id,
                "stage": str(stage),
                "outcome": outcome,
                "rule": rule,
                "errors_json": errors,
                "warnings_json": warnings,
            }
        ).execute()
