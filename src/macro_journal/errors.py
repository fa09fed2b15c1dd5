"""Exception hierarchy for the meal logging pipeline."""


class MacroJournalError(Exception):
    """Base error for the application."""


class UpstreamUnavailableError(MacroJournalError):
    """Raised when the language model cannot be reached or answers nothing.

    Nothing is stored when this is raised, so callers may retry.
    """


class ClassificationError(UpstreamUnavailableError):
    """Raised when the food classification call fails at the transport level."""


class ExtractionError(MacroJournalError):
    """Base error for structured meal extraction."""


class NotFoodError(ExtractionError):
    """Raised when the model signals the input does not describe food."""


class ExtractionFormatError(ExtractionError):
    """Raised when the model output is not valid JSON or breaks the schema."""


class RateLimitExceededError(MacroJournalError):
    """Raised when a user exceeds the request window."""

    def __init__(self, user_key: str, retry_after_seconds: float) -> None:
        super().__init__(f"Rate limit exceeded for {user_key}")
        self.user_key = user_key
        self.retry_after_seconds = retry_after_seconds


class EntryNotFoundError(MacroJournalError):
    """Raised when an entry does not exist for the requesting user."""


class ProfileNotFoundError(MacroJournalError):
    """Raised when a profile row cannot be read back after a write."""


class MacroGoalError(MacroJournalError):
    """Base error for macro goal calculation."""


class InvalidGoalRequestError(MacroGoalError):
    """Raised when the requested target cannot be planned for."""


class MacroGoalFormatError(MacroGoalError):
    """Raised when the model output is not valid JSON or breaks the schema."""
