"""Application configuration."""

import os
from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


@dataclass(frozen=True)
class PipelineConfig:
    """Tunable thresholds shared by the guarded inference pipeline."""

    model: str = "gpt-4o-mini"
    store: bool = False
    confidence_threshold: float = 0.7
    calorie_tolerance: float = 100.0
    max_input_length: int = 500
    max_newlines: int = 5
    prefilter_enabled: bool = True


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 20.0
    openai_max_retries: int = 0
    openai_store: bool = False
    confidence_threshold: float = 0.7
    calorie_tolerance: float = 100.0
    max_input_length: int = 500
    max_newlines: int = 5
    prefilter_enabled: bool = True
    rate_limit_requests: int = 20
    rate_limit_window_seconds: float = 60.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def pipeline_config(self) -> PipelineConfig:
        """Build the pipeline configuration from settings."""
        return PipelineConfig(
            model=self.openai_model,
            store=self.openai_store,
            confidence_threshold=self.confidence_threshold,
            calorie_tolerance=self.calorie_tolerance,
            max_input_length=self.max_input_length,
            max_newlines=self.max_newlines,
            prefilter_enabled=self.prefilter_enabled,
        )


def parse_bearer_token(raw: str | None) -> str | None:
    """Extract the token from an Authorization header value."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if not cleaned:
        return None
    scheme, _, token = cleaned.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
