"""Verdicts produced by the guarded inference pipeline stages."""

from dataclasses import dataclass, field
from enum import StrEnum

from macro_journal.domain.meals import ParsedMealData


class UserReason(StrEnum):
    """The only rejection messages that may reach an end user.

    Over-long input is the one exception, see ``too_long_reason``.
    """

    SUSPICIOUS = "Input contains suspicious content"
    EMPTY = "Input cannot be empty"
    NOT_FOOD = "This doesn't look like food"
    UNPARSEABLE = "Unable to parse as food, please try a different description"
    NUTRITION_FAILED = "Nutrition calculation failed"
    RATE_LIMITED = "Too many requests, please try again later"


def too_long_reason(max_length: int) -> str:
    """User-facing reason for input over the configured length limit."""
    return f"Input too long (max {max_length} characters)"


class RejectionStage(StrEnum):
    """Pipeline stage that rejected a submission."""

    RATE_LIMIT = "rate_limit"
    SANITIZATION = "sanitization"
    CLASSIFICATION = "classification"
    EXTRACTION = "extraction"
    NUTRITION = "nutrition"
    UPSTREAM = "upstream"


@dataclass(frozen=True)
class SanitizationVerdict:
    """Result of sanitizing raw user input."""

    sanitized_text: str
    rejected: bool
    reason: str | None = None
    rule: str | None = None


@dataclass(frozen=True)
class ClassificationVerdict:
    """Food / non-food decision returned by the classifier gate."""

    is_food: bool
    confidence: float
    reason: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", min(1.0, max(0.0, self.confidence)))


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of nutrition verification."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PipelineOutcome:
    """Single pass/fail verdict for one submission."""

    accepted: bool
    meal: ParsedMealData | None = None
    reason: str | None = None
    stage: RejectionStage | None = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def accept(cls, meal: ParsedMealData, warnings: list[str]) -> "PipelineOutcome":
        """Build an accepted outcome."""
        return cls(accepted=True, meal=meal, warnings=list(warnings))

    @classmethod
    def reject(
        cls,
        stage: RejectionStage,
        reason: str,
        warnings: list[str] | None = None,
    ) -> "PipelineOutcome":
        """Build a rejected outcome."""
        return cls(
            accepted=False, reason=reason, stage=stage, warnings=list(warnings or [])
        )
