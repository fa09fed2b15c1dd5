"""Guarded inference pipeline for free-text meal submissions.

Stages run in order and the first rejection ends the submission:

1. per-user rate limit (optional)
2. sanitizer
3. lexical pre-filter (optional)
4. food classifier gate
5. structured extractor
6. nutrition verifier

Every rejection maps to a fixed user-facing reason. Model output, prompts and
rule internals only reach the log and the validation monitor.
"""

import logging
from dataclasses import dataclass, field

from macro_journal.config import PipelineConfig
from macro_journal.domain.guard import (
    ClassificationVerdict,
    PipelineOutcome,
    RejectionStage,
    UserReason,
)
from macro_journal.errors import (
    ExtractionFormatError,
    NotFoodError,
    RateLimitExceededError,
    UpstreamUnavailableError,
)
from macro_journal.services.classifier import FoodClassifier
from macro_journal.services.extractor import MealExtractor
from macro_journal.services.monitoring import (
    LoggingValidationMonitor,
    ValidationMonitor,
)
from macro_journal.services.nutrition import NutritionLimits, verify_nutrition
from macro_journal.services.prefilter import looks_like_food
from macro_journal.services.rate_limit import RateLimiter
from macro_journal.services.sanitizer import InputSanitizer

_logger = logging.getLogger(__name__)


@dataclass
class MealPipeline:
    """Orchestrates the guarded stages for one submission at a time."""

    config: PipelineConfig
    sanitizer: InputSanitizer
    classifier: FoodClassifier
    extractor: MealExtractor
    limits: NutritionLimits
    monitor: ValidationMonitor = field(default_factory=LoggingValidationMonitor)
    rate_limiter: RateLimiter | None = None

    async def run(self, text: object, user_id: str | None = None) -> PipelineOutcome:
        """Run every stage and return a single verdict."""
        rejected = self._check_rate_limit(user_id)
        if rejected:
            return rejected

        verdict = self.sanitizer.sanitize(text)
        if verdict.rejected:
            self.monitor.record_rejection(
                user_id, RejectionStage.SANITIZATION, rule=verdict.rule
            )
            return PipelineOutcome.reject(
                RejectionStage.SANITIZATION, verdict.reason or UserReason.SUSPICIOUS
            )
        sanitized = verdict.sanitized_text

        if self.config.prefilter_enabled and not looks_like_food(sanitized):
            self.monitor.record_rejection(
                user_id, RejectionStage.CLASSIFICATION, rule="prefilter"
            )
            return PipelineOutcome.reject(
                RejectionStage.CLASSIFICATION, UserReason.NOT_FOOD
            )

        try:
            classification = await self.classifier.classify(sanitized)
        except UpstreamUnavailableError:
            _logger.exception("Classifier unavailable")
            return self._upstream_failure(user_id)
        if not self.accepts(classification):
            self.monitor.record_rejection(
                user_id, RejectionStage.CLASSIFICATION, rule="classifier"
            )
            return PipelineOutcome.reject(
                RejectionStage.CLASSIFICATION, UserReason.NOT_FOOD
            )

        try:
            meal = await self.extractor.extract(sanitized)
        except NotFoodError:
            self.monitor.record_rejection(
                user_id, RejectionStage.EXTRACTION, rule="not_food"
            )
            return PipelineOutcome.reject(RejectionStage.EXTRACTION, UserReason.NOT_FOOD)
        except ExtractionFormatError:
            self.monitor.record_rejection(
                user_id, RejectionStage.EXTRACTION, rule="format"
            )
            return PipelineOutcome.reject(
                RejectionStage.EXTRACTION, UserReason.UNPARSEABLE
            )
        except UpstreamUnavailableError:
            _logger.exception("Extractor unavailable")
            return self._upstream_failure(user_id)

        result = verify_nutrition(meal, self.limits)
        if not result.valid:
            self.monitor.record_rejection(
                user_id, RejectionStage.NUTRITION, errors=result.errors
            )
            return PipelineOutcome.reject(
                RejectionStage.NUTRITION,
                UserReason.NUTRITION_FAILED,
                warnings=result.warnings,
            )
        if result.warnings:
            self.monitor.record_warnings(user_id, result.warnings)
        return PipelineOutcome.accept(meal, result.warnings)

    async def check_food(
        self, text: object, user_id: str | None = None
    ) -> ClassificationVerdict:
        """Run only the sanitizer and classifier gate.

        The returned reason is always a user-facing reason or None; the
        classifier's own explanation only reaches the debug log.
        """
        verdict = self.sanitizer.sanitize(text)
        if verdict.rejected:
            self.monitor.record_rejection(
                user_id, RejectionStage.SANITIZATION, rule=verdict.rule
            )
            return ClassificationVerdict(
                is_food=False, confidence=0.0, reason=verdict.reason
            )
        try:
            classification = await self.classifier.classify(verdict.sanitized_text)
        except UpstreamUnavailableError:
            _logger.exception("Classifier unavailable")
            self.monitor.record_rejection(user_id, RejectionStage.UPSTREAM)
            return ClassificationVerdict(
                is_food=False, confidence=0.0, reason=UserReason.NUTRITION_FAILED
            )
        _logger.debug("Classifier reason: %s", classification.reason)
        if not self.accepts(classification):
            self.monitor.record_rejection(
                user_id, RejectionStage.CLASSIFICATION, rule="classifier"
            )
            return ClassificationVerdict(
                is_food=False,
                confidence=classification.confidence,
                reason=UserReason.NOT_FOOD,
            )
        return ClassificationVerdict(
            is_food=True, confidence=classification.confidence
        )

    def accepts(self, classification: ClassificationVerdict) -> bool:
        """Return True when a classification clears the confidence threshold."""
        return (
            classification.is_food
            and classification.confidence >= self.config.confidence_threshold
        )

    def _check_rate_limit(self, user_id: str | None) -> PipelineOutcome | None:
        if self.rate_limiter is None or user_id is None:
            return None
        try:
            self.rate_limiter.acquire(user_id)
        except RateLimitExceededError:
            self.monitor.record_rejection(user_id, RejectionStage.RATE_LIMIT)
            return PipelineOutcome.reject(
                RejectionStage.RATE_LIMIT, UserReason.RATE_LIMITED
            )
        return None

    def _upstream_failure(self, user_id: str | None) -> PipelineOutcome:
        self.monitor.record_rejection(user_id, RejectionStage.UPSTREAM)
        return PipelineOutcome.reject(
            RejectionStage.UPSTREAM, UserReason.NUTRITION_FAILED
        )


def build_pipeline(  # noqa: PLR0913
    config: PipelineConfig,
    classifier: FoodClassifier,
    extractor: MealExtractor,
    monitor: ValidationMonitor | None = None,
    rate_limiter: RateLimiter | None = None,
) -> MealPipeline:
    """Create a pipeline whose sanitizer and verifier follow the config."""
    return MealPipeline(
        config=config,
        sanitizer=InputSanitizer(
            max_length=config.max_input_length,
            max_newlines=config.max_newlines,
        ),
        classifier=classifier,
        extractor=extractor,
        limits=NutritionLimits(calorie_tolerance=config.calorie_tolerance),
        monitor=monitor or LoggingValidationMonitor(),
        rate_limiter=rate_limiter,
    )
