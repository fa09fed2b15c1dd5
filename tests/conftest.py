"""Shared test fixtures."""

import json
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime

import pytest

from macro_journal.adapters.supabase_identity_provider import IdentityProvider
from macro_journal.config import PipelineConfig, Settings
from macro_journal.containers import AppContainer
from macro_journal.domain.meals import EntryRecord, ParsedMealData
from macro_journal.domain.profiles import UserProfile
from macro_journal.services.classifier import CLASSIFIER_INSTRUCTIONS, FoodClassifier
from macro_journal.services.entries import EntryRepository, EntryService
from macro_journal.services.extractor import MealExtractor
from macro_journal.services.language_model import LanguageModelClient
from macro_journal.services.macro_goals import (
    MACRO_GOAL_INSTRUCTIONS,
    MacroGoalCalculator,
)
from macro_journal.services.monitoring import (
    ValidationEventRepository,
    ValidationEventService,
)
from macro_journal.services.pipeline import MealPipeline, build_pipeline
from macro_journal.services.profiles import ProfileRepository, ProfileService
from macro_journal.services.rate_limit import SlidingWindowRateLimiter

EGGS_AND_TOAST: dict[str, object] = {
    "calories": 219,
    "protein": 15,
    "carbs": 15,
    "fat": 11,
    "items": [
        {"name": "Boiled eggs (2)", "calories": 142, "protein": 12, "carbs": 1, "fat": 10},
        {"name": "Toast (1 slice)", "calories": 77, "protein": 3, "carbs": 14, "fat": 1},
    ],
}

FOOD_CLASSIFICATION = {"isFood": True, "confidence": 0.95, "reason": "eggs and toast"}

MACRO_GOALS: dict[str, object] = {
    "dailyCalories": 2000,
    "dailyProtein": 150,
    "dailyCarbs": 200,
    "dailyFat": 67,
    "explanation": "A moderate deficit for steady loss.",
    "weeklyWeightChangeGoal": -0.5,
}

TODAY = date(2026, 3, 14)

_KINDS = {CLASSIFIER_INSTRUCTIONS: "classify", MACRO_GOAL_INSTRUCTIONS: "goals"}


@dataclass
class ScriptedLanguageModelClient(LanguageModelClient):
    """Fake language model returning canned classification/extraction text."""

    classification: str = json.dumps(FOOD_CLASSIFICATION)
    extraction: str = json.dumps(EGGS_AND_TOAST)
    goals: str = json.dumps(MACRO_GOALS)
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete_json(  # noqa: PLR0913
        self,
        *,
        model: str,
        instructions: str,
        text: str,
        temperature: float,
        max_output_tokens: int | None,
        store: bool,
    ) -> str:
        kind = _KINDS.get(instructions, "extract")
        self.calls.append({"kind": kind, "model": model, "text": text})
        if self.error is not None:
            raise self.error
        if kind == "classify":
            return self.classification
        if kind == "goals":
            return self.goals
        return self.extraction

    def kinds(self) -> list[str]:
        return [str(call["kind"]) for call in self.calls]


@dataclass
class InMemoryEntryRepository(EntryRepository):
    """In-memory entry repository for tests."""

    entries: dict[int, EntryRecord] = field(default_factory=dict)
    next_id: int = 1

    def create_entry(
        self,
        user_id: str,
        entry_date: date,
        raw_text: str,
        parsed_data: ParsedMealData,
    ) -> EntryRecord:
        entry = EntryRecord(
            id=self.next_id,
            user_id=user_id,
            entry_date=entry_date,
            raw_text=raw_text,
            parsed_data=parsed_data,
            created_at=datetime.now(tz=UTC),
        )
        self.entries[entry.id] = entry
        self.next_id += 1
        return entry

    def get_entry(self, user_id: str, entry_id: int) -> EntryRecord | None:
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id:
            return None
        return entry

    def list_entries(
        self,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[EntryRecord]:
        results = [
            entry
            for entry in self.entries.values()
            if entry.user_id == user_id
            and (start is None or entry.entry_date >= start)
            and (end is None or entry.entry_date <= end)
        ]
        return sorted(results, key=lambda entry: entry.id, reverse=True)

    def delete_entry(self, user_id: str, entry_id: int) -> bool:
        if self.get_entry(user_id, entry_id) is None:
            return False
        del self.entries[entry_id]
        return True


@dataclass
class InMemoryValidationEventRepository(ValidationEventRepository):
    """In-memory validation event repository for tests."""

    events: list[dict[str, object]] = field(default_factory=list)

    def create_event(  # noqa: PLR0913
        self,
        user_id: str | None,
        stage: str,
        outcome: str,
        errors: list[str],
        warnings: list[str],
        rule: str | None,
    ) -> None:
        self.events.append(
            {
                "user_id": user_id,
                "stage": stage,
                "outcome": outcome,
                "errors": errors,
                "warnings": warnings,
                "rule": rule,
            }
        )


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[str, UserProfile] = field(default_factory=dict)

    def get_profile(self, user_id: str) -> UserProfile | None:
        return self.profiles.get(user_id)

    def create_profile(self, user_id: str, name: str | None = None) -> UserProfile:
        now = datetime.now(tz=UTC)
        profile = UserProfile(
            user_id=user_id, name=name, created_at=now, updated_at=now
        )
        self.profiles[user_id] = profile
        return profile

    def update_profile(
        self, user_id: str, changes: dict[str, object]
    ) -> UserProfile | None:
        profile = self.profiles.get(user_id)
        if profile is None:
            return None
        updated = replace(profile, **changes, updated_at=datetime.now(tz=UTC))
        self.profiles[user_id] = updated
        return updated


@dataclass
class FakeIdentityProvider(IdentityProvider):
    """Identity provider with a fixed token table."""

    tokens: dict[str, str] = field(default_factory=lambda: {"token-1": "user-1"})

    def resolve_user_id(self, access_token: str) -> str | None:
        return self.tokens.get(access_token)


def make_pipeline(
    client: LanguageModelClient,
    config: PipelineConfig | None = None,
    events: InMemoryValidationEventRepository | None = None,
    rate_limiter: SlidingWindowRateLimiter | None = None,
) -> MealPipeline:
    resolved = config or PipelineConfig()
    return build_pipeline(
        resolved,
        classifier=FoodClassifier(client=client, model=resolved.model),
        extractor=MealExtractor(client=client, model=resolved.model),
        monitor=ValidationEventService(events or InMemoryValidationEventRepository()),
        rate_limiter=rate_limiter,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def language_model() -> ScriptedLanguageModelClient:
    return ScriptedLanguageModelClient()


@pytest.fixture
def events() -> InMemoryValidationEventRepository:
    return InMemoryValidationEventRepository()


@pytest.fixture
def entry_repository() -> InMemoryEntryRepository:
    return InMemoryEntryRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def container(
    settings: Settings,
    language_model: ScriptedLanguageModelClient,
    events: InMemoryValidationEventRepository,
    entry_repository: InMemoryEntryRepository,
    profile_repository: InMemoryProfileRepository,
) -> AppContainer:
    rate_limiter = SlidingWindowRateLimiter(max_requests=3, window_seconds=60)
    pipeline = make_pipeline(
        language_model,
        config=settings.pipeline_config(),
        events=events,
        rate_limiter=rate_limiter,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        identity_provider=FakeIdentityProvider(),
        pipeline=pipeline,
        entry_service=EntryService(pipeline=pipeline, repository=entry_repository),
        profile_service=ProfileService(profile_repository),
        macro_goal_calculator=MacroGoalCalculator(
            client=language_model, model="gpt-4o-mini", today=lambda: TODAY
        ),
        close_resources=close_resources,
        rate_limiter=rate_limiter,
    )
