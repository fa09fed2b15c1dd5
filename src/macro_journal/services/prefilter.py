"""Cheap lexical check run before paying for classification calls."""

import re

FOOD_VOCABULARY: tuple[str, ...] = (
    # foods
    "egg",
    "bread",
    "toast",
    "rice",
    "chicken",
    "fish",
    "meat",
    "milk",
    "cheese",
    "vegetable",
    "fruit",
    "salad",
    "soup",
    "curry",
    "dal",
    "roti",
    "naan",
    "pasta",
    "pizza",
    "burger",
    "sandwich",
    "coffee",
    "tea",
    "juice",
    "yogurt",
    "butter",
    "oil",
    "sugar",
    "salt",
    "spice",
    # units
    "cup",
    "gram",
    "kg",
    "oz",
    "liter",
    "ml",
    "teaspoon",
    "tablespoon",
    "piece",
    "slice",
    "bowl",
    "plate",
    "serving",
    # meal times
    "breakfast",
    "lunch",
    "dinner",
    "snack",
    "meal",
    "ate",
    "had",
    # cooking methods
    "boiled",
    "fried",
    "grilled",
    "baked",
    "steamed",
    "roasted",
)

_DIGIT = re.compile(r"\d")
MIN_AMBIGUOUS_WORDS = 3


def looks_like_food(text: str) -> bool:
    """Return False only for very short text with no food signal.

    Not authoritative: anything ambiguous is left to the classifier.
    """
    lowered = text.lower()
    if any(term in lowered for term in FOOD_VOCABULARY):
        return True
    if _DIGIT.search(text):
        return True
    return len(text.split()) >= MIN_AMBIGUOUS_WORDS
