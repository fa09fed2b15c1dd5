"""Supabase auth lookup for bearer tokens."""

import logging
from dataclasses import dataclass
from typing import Protocol

from supabase import Client

_logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Resolves an access token to an opaque user identifier."""

    def resolve_user_id(self, access_token: str) -> str | None:
        """Return the user id for a valid token, else None."""


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Supabase auth."""

    client: Client

    def resolve_user_id(self, access_token: str) -> str | None:
        """Verify the token with Supabase auth."""
        try:
            response = self.client.auth.get_user(access_token)
        except Exception:
            _logger.warning("Supabase token verification failed")
            return None
        user = getattr(response, "user", None)
        if user is None:
            return None
        return str(user.id)
