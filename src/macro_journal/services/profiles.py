"""User profile service and daily goal lookup."""

import logging
from dataclasses import dataclass
from typing import Protocol

from macro_journal.domain.profiles import (
    DEFAULT_GOALS,
    MacroGoals,
    ProfileUpdate,
    UserProfile,
)
from macro_journal.errors import ProfileNotFoundError

_logger = logging.getLogger(__name__)


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the user's profile if it exists."""

    def create_profile(self, user_id: str, name: str | None = None) -> UserProfile:
        """Insert an empty profile and return it."""

    def update_profile(
        self, user_id: str, changes: dict[str, object]
    ) -> UserProfile | None:
        """Write the given columns and return the updated profile."""


@dataclass
class ProfileService:
    """Service for user profiles and their daily macro goals."""

    repository: ProfileRepository

    def get_or_create_profile(
        self, user_id: str, name: str | None = None
    ) -> UserProfile:
        """Return the user's profile, creating an empty one on first use."""
        profile = self.repository.get_profile(user_id)
        if profile is not None:
            return profile
        _logger.info("Creating profile for user %s", user_id)
        return self.repository.create_profile(user_id, name)

    def update_profile(self, user_id: str, update: ProfileUpdate) -> UserProfile:
        """Apply a partial update; fields absent from the update are kept."""
        profile = self.get_or_create_profile(user_id)
        changes = update.changes()
        if not changes:
            return profile
        updated = self.repository.update_profile(user_id, changes)
        if updated is None:
            raise ProfileNotFoundError(f"Profile for {user_id} not found")
        return updated

    def goals_for(self, user_id: str) -> MacroGoals:
        """Return the user's daily goals, or the defaults without a profile."""
        profile = self.repository.get_profile(user_id)
        if profile is None:
            return DEFAULT_GOALS
        return profile.goals()
