"""Operational monitoring of pipeline rejections and verifier warnings."""

import logging
from dataclasses import dataclass
from typing import Protocol

_logger = logging.getLogger(__name__)


class ValidationEventRepository(Protocol):
    """Persistence interface for validation events."""

    def create_event(  # noqa: PLR0913
        self,
        user_id: str | None,
        stage: str,
        outcome: str,
        errors: list[str],
        warnings: list[str],
        rule: str | None,
    ) -> None:
        """Create a validation event row."""


class ValidationMonitor(Protocol):
    """Sink for events that operators see and end users never do."""

    def record_warnings(self, user_id: str | None, warnings: list[str]) -> None:
        """Record non-blocking verifier warnings."""

    def record_rejection(
        self,
        user_id: str | None,
        stage: str,
        errors: list[str] | None = None,
        rule: str | None = None,
    ) -> None:
        """Record a rejected submission."""


@dataclass
class LoggingValidationMonitor(ValidationMonitor):
    """Monitor that only writes to the application log."""

    def record_warnings(self, user_id: str | None, warnings: list[str]) -> None:
        """Log verifier warnings."""
        for warning in warnings:
            _logger.warning("Nutrition warning user=%s: %s", user_id, warning)

    def record_rejection(
        self,
        user_id: str | None,
        stage: str,
        errors: list[str] | None = None,
        rule: str | None = None,
    ) -> None:
        """Log a rejected submission."""
        _logger.info(
            "Submission rejected user=%s stage=%s rule=%s errors=%s",
            user_id,
            stage,
            rule,
            len(errors or []),
        )


@dataclass
class ValidationEventService(ValidationMonitor):
    """Monitor that logs and persists validation events."""

    repository: ValidationEventRepository

    def record_warnings(self, user_id: str | None, warnings: list[str]) -> None:
        """Persist verifier warnings for an accepted submission."""
        if not warnings:
            return
        LoggingValidationMonitor().record_warnings(user_id, warnings)
        self._store(user_id, "nutrition", "accepted", [], warnings, None)

    def record_rejection(
        self,
        user_id: str | None,
        stage: str,
        errors: list[str] | None = None,
        rule: str | None = None,
    ) -> None:
        """Persist a rejected submission."""
        LoggingValidationMonitor().record_rejection(user_id, stage, errors, rule)
        self._store(user_id, stage, "rejected", errors or [], [], rule)

    def _store(  # noqa: PLR0913
        self,
        user_id: str | None,
        stage: str,
        outcome: str,
        errors: list[str],
        warnings: list[str],
        rule: str | None,
    ) -> None:
        try:
            self.repository.create_event(
                user_id=user_id,
                stage=stage,
                outcome=outcome,
                errors=errors,
                warnings=warnings,
                rule=rule,
            )
        except Exception:
            _logger.exception("Failed to persist validation event")
