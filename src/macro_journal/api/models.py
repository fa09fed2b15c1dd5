"""Pydantic models for HTTP request and response payloads."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from macro_journal.domain.meals import DailySummary, EntryRecord, ParsedMealData
from macro_journal.domain.profiles import MacroGoalPlan, MacroGoals, UserProfile


class MealTextRequest(BaseModel):
    """Free-text meal description submitted by a user."""

    text: str | None = None
    entry_date: date | None = Field(default=None, alias="date")

    model_config = ConfigDict(populate_by_name=True)


class FoodCheckResponse(BaseModel):
    """Result of the food validation endpoint."""

    is_food: bool = Field(serialization_alias="isFood")
    confidence: float
    reason: str | None = None


class EntryResponse(BaseModel):
    """Serialized meal entry."""

    id: int
    date: date
    raw_text: str
    parsed_data: ParsedMealData
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: EntryRecord) -> "EntryResponse":
        """Build a response from a stored entry."""
        return cls(
            id=record.id,
            date=record.entry_date,
            raw_text=record.raw_text,
            parsed_data=record.parsed_data,
            created_at=record.created_at,
        )


class MacroGoalsResponse(BaseModel):
    """Serialized daily macro goals."""

    calories: int
    protein: int
    carbs: int
    fat: int

    @classmethod
    def from_goals(cls, goals: MacroGoals) -> "MacroGoalsResponse":
        """Build a response from domain goals."""
        return cls(
            calories=goals.calories,
            protein=goals.protein,
            carbs=goals.carbs,
            fat=goals.fat,
        )


class DailySummaryResponse(BaseModel):
    """Serialized daily totals."""

    date: date
    total_calories: float
    total_protein: float
    total_carbs: float
    total_fat: float
    entry_count: int
    entries: list[EntryResponse]
    goals: MacroGoalsResponse
    progress: dict[str, float]

    @classmethod
    def from_summary(cls, summary: DailySummary) -> "DailySummaryResponse":
        """Build a response from a daily summary."""
        return cls(
            date=summary.day,
            total_calories=summary.total_calories,
            total_protein=summary.total_protein,
            total_carbs=summary.total_carbs,
            total_fat=summary.total_fat,
            entry_count=summary.entry_count,
            entries=[EntryResponse.from_record(entry) for entry in summary.entries],
            goals=MacroGoalsResponse.from_goals(summary.goals),
            progress=summary.progress(),
        )


class ProfileResponse(BaseModel):
    """Serialized user profile."""

    id: str
    name: str | None = None
    daily_goal_calories: int | None = None
    daily_goal_protein: int | None = None
    daily_goal_carbs: int | None = None
    daily_goal_fat: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ProfileResponse":
        """Build a response from a stored profile."""
        return cls(
            id=profile.user_id,
            name=profile.name,
            daily_goal_calories=profile.daily_goal_calories,
            daily_goal_protein=profile.daily_goal_protein,
            daily_goal_carbs=profile.daily_goal_carbs,
            daily_goal_fat=profile.daily_goal_fat,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )


class MacroGoalPlanResponse(BaseModel):
    """Result of the macro goal calculation endpoint."""

    success: bool = True
    macros: MacroGoalsResponse
    explanation: str
    weekly_weight_change_goal: float | None = Field(
        default=None, serialization_alias="weeklyWeightChangeGoal"
    )
    estimated_timeframe: str | None = Field(
        default=None, serialization_alias="estimatedTimeframe"
    )

    @classmethod
    def from_plan(cls, plan: MacroGoalPlan) -> "MacroGoalPlanResponse":
        """Build a response from a calculated plan."""
        return cls(
            macros=MacroGoalsResponse.from_goals(plan.goals),
            explanation=plan.explanation,
            weekly_weight_change_goal=plan.weekly_weight_change_goal,
            estimated_timeframe=plan.estimated_timeframe,
        )
