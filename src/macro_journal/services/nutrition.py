"""Nutrition verifier for structured meal data.

The verifier assumes the extraction model may have been manipulated and
re-derives expected values from the 4/4/9 kcal-per-gram identities instead of
trusting any single field. All checks run; errors block acceptance, warnings
are only reported to monitoring.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass

from macro_journal.domain.guard import ValidationResult
from macro_journal.domain.meals import ParsedMealData

KCAL_PER_GRAM_PROTEIN = 4
KCAL_PER_GRAM_CARBS = 4
KCAL_PER_GRAM_FAT = 9

_MACROS = ("calories", "protein", "carbs", "fat")
_NAME_MARKERS = ("<", ">", "{", "}", "[", "]", "script", "function")


@dataclass(frozen=True)
class NutritionLimits:
    """Absolute domain limits and tolerances for one meal entry."""

    min_calories: float = 1
    max_calories: float = 5000
    max_protein: float = 500
    max_carbs: float = 800
    max_fat: float = 300
    max_item_calories: float = 3000
    max_item_protein: float = 200
    max_item_carbs: float = 400
    max_item_fat: float = 150
    min_items: int = 1
    max_items: int = 50
    max_name_length: int = 100
    calorie_tolerance: float = 100
    sum_calorie_tolerance: float = 10
    sum_macro_tolerance: float = 5
    max_macro_ratio: float = 0.9


DEFAULT_LIMITS = NutritionLimits()


def verify_nutrition(
    meal: ParsedMealData | Mapping[str, object],
    limits: NutritionLimits = DEFAULT_LIMITS,
) -> ValidationResult:
    """Validate internal consistency and ranges of a meal record."""
    errors: list[str] = []
    warnings: list[str] = []

    data = meal.model_dump() if isinstance(meal, ParsedMealData) else meal
    if not isinstance(data, Mapping):
        return ValidationResult(
            valid=False, errors=["Invalid data format: expected object"]
        )

    totals = _check_totals(data, limits, errors)
    items = _check_items(data, limits, errors, warnings)

    if totals is not None:
        _check_energy(totals, limits, warnings)
        _check_patterns(totals, warnings)
        if items:
            _check_item_sums(totals, items, limits, warnings)

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)


def _check_totals(
    data: Mapping[str, object], limits: NutritionLimits, errors: list[str]
) -> dict[str, float] | None:
    totals: dict[str, float] = {}
    for key in _MACROS:
        if key not in data:
            errors.append(f"Missing required field: {key}")
        elif not _is_number(data[key]):
            errors.append(f"{key.capitalize()} must be a valid number")
        else:
            totals[key] = float(data[key])

    if "calories" in totals:
        calories = totals["calories"]
        if calories < limits.min_calories:
            errors.append(f"Calories too low (minimum {limits.min_calories:g})")
        if calories > limits.max_calories:
            errors.append(f"Calories too high (max {limits.max_calories:g})")
    for key, maximum in (
        ("protein", limits.max_protein),
        ("carbs", limits.max_carbs),
        ("fat", limits.max_fat),
    ):
        if key in totals and not 0 <= totals[key] <= maximum:
            errors.append(f"{key.capitalize()} out of range (0-{maximum:g}g)")

    if len(totals) < len(_MACROS):
        return None
    return totals


def _check_items(
    data: Mapping[str, object],
    limits: NutritionLimits,
    errors: list[str],
    warnings: list[str],
) -> list[dict[str, float]]:
    if "items" not in data:
        errors.append("Missing required field: items")
        return []
    items = data["items"]
    if not isinstance(items, list):
        errors.append("Items must be an array")
        return []
    if len(items) < limits.min_items:
        errors.append("At least one food item is required")
    if len(items) > limits.max_items:
        errors.append(f"Too many items (max {limits.max_items})")

    checked: list[dict[str, float]] = []
    item_limits = {
        "calories": limits.max_item_calories,
        "protein": limits.max_item_protein,
        "carbs": limits.max_item_carbs,
        "fat": limits.max_item_fat,
    }
    for index, item in enumerate(items, start=1):
        if not isinstance(item, Mapping):
            errors.append(f"Item {index}: invalid format")
            continue
        name = item.get("name")
        label = _check_item_name(index, name, limits, errors)

        values: dict[str, float] = {}
        for key in _MACROS:
            value = item.get(key)
            if not _is_number(value):
                errors.append(f"Item {index}: invalid {key}")
                continue
            maximum = item_limits[key]
            unit = "" if key == "calories" else "g"
            if not 0 <= value <= maximum:
                errors.append(
                    f"Item {index}: {key} out of range (0-{maximum:g}{unit})"
                )
            values[key] = float(value)

        if len(values) < len(_MACROS):
            continue
        if all(values[key] == 0 for key in _MACROS):
            warnings.append(f"Item {index} ({label}): all macros are zero")
        expected = _expected_calories(values)
        if abs(values["calories"] - expected) > limits.calorie_tolerance / 2:
            warnings.append(
                f"Item {index} ({label}): calorie mismatch "
                f"({values['calories']:g} vs expected {round(expected)})"
            )
        checked.append(values)
    return checked


def _check_item_name(
    index: int, name: object, limits: NutritionLimits, errors: list[str]
) -> str:
    if not isinstance(name, str) or not name.strip():
        errors.append(f"Item {index}: missing or invalid name")
        return "unnamed"
    if len(name) > limits.max_name_length:
        errors.append(f"Item {index}: name too long")
    lowered = name.lower()
    if any(marker in lowered for marker in _NAME_MARKERS):
        errors.append(f"Item {index}: name contains invalid characters")
    return name[:30]


def _expected_calories(values: Mapping[str, float]) -> float:
    return (
        values["protein"] * KCAL_PER_GRAM_PROTEIN
        + values["carbs"] * KCAL_PER_GRAM_CARBS
        + values["fat"] * KCAL_PER_GRAM_FAT
    )


def _check_energy(
    totals: Mapping[str, float], limits: NutritionLimits, warnings: list[str]
) -> None:
    calories = totals["calories"]
    expected = _expected_calories(totals)
    if abs(calories - expected) > limits.calorie_tolerance:
        warnings.append(
            f"Calorie calculation mismatch: {calories:g} cal "
            f"vs expected {round(expected)} cal"
        )

    if expected <= 0:
        return
    ratios = {
        "Protein": totals["protein"] * KCAL_PER_GRAM_PROTEIN / expected,
        "Carb": totals["carbs"] * KCAL_PER_GRAM_CARBS / expected,
        "Fat": totals["fat"] * KCAL_PER_GRAM_FAT / expected,
    }
    for label, ratio in ratios.items():
        if ratio > limits.max_macro_ratio:
            warnings.append(f"{label} ratio very high ({round(ratio * 100)}%)")


def _check_item_sums(
    totals: Mapping[str, float],
    items: list[dict[str, float]],
    limits: NutritionLimits,
    warnings: list[str],
) -> None:
    for key in _MACROS:
        summed = sum(item[key] for item in items)
        tolerance = (
            limits.sum_calorie_tolerance
            if key == "calories"
            else limits.sum_macro_tolerance
        )
        if abs(summed - totals[key]) > tolerance:
            warnings.append(
                f"Total {key} ({totals[key]:g}) doesn't match "
                f"sum of items ({round(summed)})"
            )


def _check_patterns(totals: Mapping[str, float], warnings: list[str]) -> None:
    values = [totals[key] for key in _MACROS]
    if all(value > 0 and value % 100 == 0 for value in values):
        warnings.append("All macros are round hundreds (suspicious pattern)")
    if len(set(values)) == 1 and values[0] != 0:
        warnings.append("All macro values are identical (suspicious pattern)")
