"""Meal entry service: guarded logging, listing and daily summaries."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol

from macro_journal.domain.guard import PipelineOutcome
from macro_journal.domain.meals import DailySummary, EntryRecord, ParsedMealData
from macro_journal.domain.profiles import DEFAULT_GOALS, MacroGoals
from macro_journal.errors import EntryNotFoundError
from macro_journal.services.pipeline import MealPipeline

_logger = logging.getLogger(__name__)


class EntryRepository(Protocol):
    """Persistence interface for meal entries, scoped to the owning user."""

    def create_entry(
        self,
        user_id: str,
        entry_date: date,
        raw_text: str,
        parsed_data: ParsedMealData,
    ) -> EntryRecord:
        """Insert an entry and return it."""

    def get_entry(self, user_id: str, entry_id: int) -> EntryRecord | None:
        """Return one entry owned by the user."""

    def list_entries(
        self,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[EntryRecord]:
        """Return entries, newest first, optionally within a date range."""

    def delete_entry(self, user_id: str, entry_id: int) -> bool:
        """Delete an entry owned by the user; return False when absent."""


@dataclass(frozen=True)
class LoggedMeal:
    """Pipeline outcome and the entry stored for it, if any."""

    outcome: PipelineOutcome
    entry: EntryRecord | None = None


def _today() -> date:
    return datetime.now(tz=UTC).date()


@dataclass
class EntryService:
    """Runs the pipeline and persists only accepted meals."""

    pipeline: MealPipeline
    repository: EntryRepository
    today: Callable[[], date] = _today

    async def log_meal(
        self, user_id: str, raw_text: object, entry_date: date | None = None
    ) -> LoggedMeal:
        """Validate a meal description and store it when accepted."""
        outcome = await self.pipeline.run(raw_text, user_id=user_id)
        if not outcome.accepted or outcome.meal is None:
            return LoggedMeal(outcome=outcome)
        entry = self.repository.create_entry(
            user_id=user_id,
            entry_date=entry_date or self.today(),
            raw_text=str(raw_text),
            parsed_data=outcome.meal,
        )
        return LoggedMeal(outcome=outcome, entry=entry)

    async def edit_meal(
        self, user_id: str, entry_id: int, raw_text: object
    ) -> LoggedMeal:
        """Replace an entry with a newly validated one on the same date.

        The original entry is left untouched when the new text is rejected.
        """
        existing = self.repository.get_entry(user_id, entry_id)
        if existing is None:
            raise EntryNotFoundError(f"Entry {entry_id} not found")
        logged = await self.log_meal(user_id, raw_text, existing.entry_date)
        if logged.entry is not None and not self.repository.delete_entry(
            user_id, entry_id
        ):
            _logger.warning(
                "Entry %s was already gone when replaced by entry %s",
                entry_id,
                logged.entry.id,
            )
        return logged

    def list_entries(
        self,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[EntryRecord]:
        """Return the user's entries."""
        return self.repository.list_entries(user_id, start=start, end=end)

    def delete_entry(self, user_id: str, entry_id: int) -> None:
        """Delete an entry owned by the user."""
        if not self.repository.delete_entry(user_id, entry_id):
            raise EntryNotFoundError(f"Entry {entry_id} not found")

    def daily_summary(
        self,
        user_id: str,
        day: date | None = None,
        goals: MacroGoals = DEFAULT_GOALS,
    ) -> DailySummary:
        """Sum macros over all entries logged on a day."""
        resolved_day = day or self.today()
        entries = self.repository.list_entries(
            user_id, start=resolved_day, end=resolved_day
        )
        return DailySummary(
            day=resolved_day,
            total_calories=sum(entry.parsed_data.calories for entry in entries),
            total_protein=sum(entry.parsed_data.protein for entry in entries),
            total_carbs=sum(entry.parsed_data.carbs for entry in entries),
            total_fat=sum(entry.parsed_data.fat for entry in entries),
            entry_count=len(entries),
            entries=entries,
            goals=goals,
        )
