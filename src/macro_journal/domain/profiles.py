"""Domain models for user profiles and daily macro goals."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Gender = Literal["male", "female"]
ActivityLevel = Literal["sedentary", "light", "moderate", "active", "very_active"]


@dataclass(frozen=True)
class MacroGoals:
    """Daily targets in kcal and grams."""

    calories: int
    protein: int
    carbs: int
    fat: int


DEFAULT_GOALS = MacroGoals(calories=2000, protein=150, carbs=200, fat=65)


@dataclass(frozen=True)
class UserProfile:
    """Stored profile row; unset goals are None."""

    user_id: str
    name: str | None = None
    daily_goal_calories: int | None = None
    daily_goal_protein: int | None = None
    daily_goal_carbs: int | None = None
    daily_goal_fat: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def goals(self) -> MacroGoals:
        """Return the profile goals, using defaults for unset or zero values."""
        return MacroGoals(
            calories=self.daily_goal_calories or DEFAULT_GOALS.calories,
            protein=self.daily_goal_protein or DEFAULT_GOALS.protein,
            carbs=self.daily_goal_carbs or DEFAULT_GOALS.carbs,
            fat=self.daily_goal_fat or DEFAULT_GOALS.fat,
        )


def progress_percent(current: float, goal: int) -> float:
    """Share of a goal reached, capped at 100."""
    if goal <= 0:
        return 0.0
    return min(current / goal * 100, 100.0)


class ProfileUpdate(BaseModel):
    """Partial profile update; only fields present in the payload are written."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    name: str | None = Field(default=None, max_length=100)
    daily_goal_calories: int | None = Field(default=None, ge=0, le=10000)
    daily_goal_protein: int | None = Field(default=None, ge=0, le=1000)
    daily_goal_carbs: int | None = Field(default=None, ge=0, le=1500)
    daily_goal_fat: int | None = Field(default=None, ge=0, le=600)

    def changes(self) -> dict[str, object]:
        """Return only the columns the caller set."""
        return self.model_dump(exclude_unset=True)


class MacroGoalRequest(BaseModel):
    """Body metrics and target used to calculate daily macro goals."""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    gender: Gender
    height: float = Field(ge=100, le=250)
    weight: float = Field(ge=30, le=300)
    target_weight: float = Field(alias="targetWeight", ge=30, le=300)
    target_date: date = Field(alias="targetDate")
    age: int | None = Field(default=None, ge=10, le=120)
    activity_level: ActivityLevel | None = Field(default=None, alias="activityLevel")


@dataclass(frozen=True)
class MacroGoalPlan:
    """Calculated daily goals with the model's explanation."""

    goals: MacroGoals
    explanation: str
    weekly_weight_change_goal: float | None = None
    estimated_timeframe: str | None = None
    calories_adjusted: bool = False
