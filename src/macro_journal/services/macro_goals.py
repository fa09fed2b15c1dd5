"""Personalized daily macro goals calculated by the language model."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from macro_journal.domain.profiles import MacroGoalPlan, MacroGoalRequest, MacroGoals
from macro_journal.errors import InvalidGoalRequestError, MacroGoalFormatError
from macro_journal.services.language_model import LanguageModelClient, load_json_object

MACRO_GOAL_INSTRUCTIONS = """You are a certified nutrition and fitness expert. Calculate personalized daily macro goals based on user metrics.

CRITICAL RULES:
1. Use scientifically-backed nutrition principles
2. Ensure safe and sustainable goals (0.5-1kg weight loss per week max, 0.25-0.5kg gain per week max)
3. Consider BMR (Basal Metabolic Rate) and TDEE (Total Daily Energy Expenditure)
4. Provide balanced macronutrient distribution
5. NEVER recommend extreme deficits or unsafe practices
6. If goal is unrealistic for timeframe, adjust to safe levels and explain

RESPONSE FORMAT (JSON only):
{
  "dailyCalories": <integer 1000-5000>,
  "dailyProtein": <integer grams>,
  "dailyCarbs": <integer grams>,
  "dailyFat": <integer grams>,
  "explanation": "<2-3 sentence explanation of the plan>",
  "weeklyWeightChangeGoal": <kg per week>,
  "estimatedTimeframe": "<realistic timeframe if different from target>"
}

CALCULATION GUIDELINES:
- BMR (Mifflin-St Jeor):
  Male: 10 x weight(kg) + 6.25 x height(cm) - 5 x age + 5
  Female: 10 x weight(kg) + 6.25 x height(cm) - 5 x age - 161
- TDEE: BMR x activity multiplier (1.2-1.9)
- Weight loss: 500-1000 cal deficit per day = 0.5-1kg per week
- Weight gain: 300-500 cal surplus per day = 0.25-0.5kg per week
- Protein: 1.6-2.2g per kg body weight (higher for weight loss)
- Fat: 20-35% of total calories
- Carbs: Remaining calories

Ensure macros add up: (protein x 4) + (carbs x 4) + (fat x 9) = calories"""

_logger = logging.getLogger(__name__)


class MacroGoalResponse(BaseModel):
    """Expected JSON shape of a macro goal response."""

    model_config = ConfigDict(strict=True, populate_by_name=True, allow_inf_nan=False)

    daily_calories: int = Field(alias="dailyCalories", ge=1000, le=5000)
    daily_protein: int = Field(alias="dailyProtein", ge=50, le=500)
    daily_carbs: int = Field(alias="dailyCarbs", ge=50, le=800)
    daily_fat: int = Field(alias="dailyFat", ge=20, le=300)
    explanation: str
    weekly_weight_change_goal: float | None = Field(
        default=None, alias="weeklyWeightChangeGoal"
    )
    estimated_timeframe: str | None = Field(default=None, alias="estimatedTimeframe")


def _today() -> date:
    return datetime.now(tz=UTC).date()


@dataclass
class MacroGoalCalculator:
    """Turns body metrics and a target weight into daily macro goals."""

    client: LanguageModelClient
    model: str
    store: bool = False
    temperature: float = 0.3
    max_output_tokens: int = 500
    calorie_tolerance: float = 100.0
    min_days_ahead: int = 7
    today: Callable[[], date] = _today

    async def calculate(self, request: MacroGoalRequest) -> MacroGoalPlan:
        """Calculate goals for a request.

        Raises InvalidGoalRequestError, MacroGoalFormatError or
        UpstreamUnavailableError.
        """
        days = (request.target_date - self.today()).days
        if days < self.min_days_ahead:
            raise InvalidGoalRequestError(
                f"Target date must be at least {self.min_days_ahead} days in the future"
            )
        raw = await self.client.complete_json(
            model=self.model,
            instructions=MACRO_GOAL_INSTRUCTIONS,
            text=describe_goal_request(request, days),
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            store=self.store,
        )
        return parse_macro_goal_response(raw, self.calorie_tolerance)


def describe_goal_request(request: MacroGoalRequest, days: int) -> str:
    """Render the user metrics as the model's input text."""
    difference = request.target_weight - request.weight
    direction = "loss" if difference < 0 else "gain"
    weeks = days / 7
    context = {
        "gender": request.gender,
        "height": f"{request.height:g} cm",
        "currentWeight": f"{request.weight:g} kg",
        "targetWeight": f"{request.target_weight:g} kg",
        "weightChange": f"{abs(difference):.1f} kg {direction}",
        "timeframe": f"{days} days ({weeks:.1f} weeks)",
        "weeklyGoal": f"{abs(difference) / weeks:.2f} kg per week",
    }
    if request.age is not None:
        context["age"] = str(request.age)
    if request.activity_level is not None:
        context["activityLevel"] = request.activity_level
    lines = "\n".join(f"- {key}: {value}" for key, value in context.items())
    return (
        "Calculate daily macro goals for:\n\n"
        f"User Profile:\n{lines}\n\n"
        "Please provide a safe, sustainable, and effective macro plan."
    )


def parse_macro_goal_response(raw: str, calorie_tolerance: float) -> MacroGoalPlan:
    """Validate a macro goal response and reconcile calories with the macros."""
    payload = load_json_object(raw)
    if payload is None:
        _logger.warning("Macro goal calculator returned invalid JSON")
        raise MacroGoalFormatError("Macro goal response is not a JSON object")
    try:
        response = MacroGoalResponse.model_validate(payload)
    except ValidationError as exc:
        _logger.warning(
            "Macro goal response failed schema validation: %s errors",
            exc.error_count(),
        )
        raise MacroGoalFormatError("Macro goal response does not match schema") from exc

    expected = (
        response.daily_protein * 4 + response.daily_carbs * 4 + response.daily_fat * 9
    )
    calories = response.daily_calories
    adjusted = abs(calories - expected) > calorie_tolerance
    if adjusted:
        _logger.warning(
            "Calorie mismatch in macro goals: %s vs expected %s", calories, expected
        )
        calories = expected
    return MacroGoalPlan(
        goals=MacroGoals(
            calories=calories,
            protein=response.daily_protein,
            carbs=response.daily_carbs,
            fat=response.daily_fat,
        ),
        explanation=response.explanation,
        weekly_weight_change_goal=response.weekly_weight_change_goal,
        estimated_timeframe=response.estimated_timeframe,
        calories_adjusted=adjusted,
    )
