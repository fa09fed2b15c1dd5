"""Domain models for meal entries."""

from dataclasses import dataclass, field
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from macro_journal.domain.profiles import DEFAULT_GOALS, MacroGoals, progress_percent


class FoodItem(BaseModel):
    """Single food item with its macros (grams, kcal)."""

    model_config = ConfigDict(strict=True, frozen=True, allow_inf_nan=False)

    name: str
    calories: float
    protein: float
    carbs: float
    fat: float


class ParsedMealData(BaseModel):
    """Structured macros extracted from a free-text meal description."""

    model_config = ConfigDict(strict=True, frozen=True, allow_inf_nan=False)

    calories: float
    protein: float
    carbs: float
    fat: float
    items: list[FoodItem]


@dataclass(frozen=True)
class EntryRecord:
    """Persisted meal entry."""

    id: int
    user_id: str
    entry_date: date
    raw_text: str
    parsed_data: ParsedMealData
    created_at: datetime | None = None


@dataclass(frozen=True)
class DailySummary:
    """Totals of all entries logged on one day, measured against goals."""

    day: date
    total_calories: float
    total_protein: float
    total_carbs: float
    total_fat: float
    entry_count: int
    entries: list[EntryRecord] = field(default_factory=list)
    goals: MacroGoals = DEFAULT_GOALS

    def progress(self) -> dict[str, float]:
        """Percent of each daily goal reached, capped at 100."""
        return {
            "calories": progress_percent(self.total_calories, self.goals.calories),
            "protein": progress_percent(self.total_protein, self.goals.protein),
            "carbs": progress_percent(self.total_carbs, self.goals.carbs),
            "fat": progress_percent(self.total_fat, self.goals.fat),
        }
