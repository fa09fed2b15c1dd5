"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from macro_journal.adapters.openai_language_model_client import (
    OpenAILanguageModelClient,
)
from macro_journal.adapters.supabase_entry_repository import SupabaseEntryRepository
from macro_journal.adapters.supabase_identity_provider import (
    IdentityProvider,
    SupabaseIdentityProvider,
)
from macro_journal.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from macro_journal.adapters.supabase_validation_event_repository import (
    SupabaseValidationEventRepository,
)
from macro_journal.config import Settings
from macro_journal.services.classifier import FoodClassifier
from macro_journal.services.entries import EntryService
from macro_journal.services.extractor import MealExtractor
from macro_journal.services.macro_goals import MacroGoalCalculator
from macro_journal.services.monitoring import ValidationEventService
from macro_journal.services.pipeline import MealPipeline, build_pipeline
from macro_journal.services.profiles import ProfileService
from macro_journal.services.rate_limit import RateLimiter, SlidingWindowRateLimiter


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    identity_provider: IdentityProvider
    pipeline: MealPipeline
    entry_service: EntryService
    profile_service: ProfileService
    macro_goal_calculator: MacroGoalCalculator
    close_resources: Callable[[], Awaitable[None]]
    rate_limiter: RateLimiter | None = None


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    config = resolved_settings.pipeline_config()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    language_model = OpenAILanguageModelClient.create(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.openai_timeout_seconds,
        max_retries=resolved_settings.openai_max_retries,
    )
    rate_limiter = SlidingWindowRateLimiter(
        max_requests=resolved_settings.rate_limit_requests,
        window_seconds=resolved_settings.rate_limit_window_seconds,
    )
    pipeline = build_pipeline(
        config,
        classifier=FoodClassifier(
            client=language_model, model=config.model, store=config.store
        ),
        extractor=MealExtractor(
            client=language_model, model=config.model, store=config.store
        ),
        monitor=ValidationEventService(
            SupabaseValidationEventRepository(supabase_client)
        ),
        rate_limiter=rate_limiter,
    )
    entry_service = EntryService(
        pipeline=pipeline,
        repository=SupabaseEntryRepository(supabase_client),
    )
    macro_goal_calculator = MacroGoalCalculator(
        client=language_model,
        model=config.model,
        store=config.store,
        calorie_tolerance=config.calorie_tolerance,
    )

    async def close_resources() -> None:
        await language_model.close()

    return AppContainer(
        settings=resolved_settings,
        identity_provider=SupabaseIdentityProvider(supabase_client),
        pipeline=pipeline,
        entry_service=entry_service,
        profile_service=ProfileService(SupabaseProfileRepository(supabase_client)),
        macro_goal_calculator=macro_goal_calculator,
        close_resources=close_resources,
        rate_limiter=rate_limiter,
    )
