"""Sign-in flow delegated to the hosted auth provider."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from recipe_wizard.domain.users import UserIdentity
from recipe_wizard.services.cache import Cache
from recipe_wizard.services.history import HistorySnapshot
from recipe_wizard.services.states import AppState

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """Signed-in user plus the provider access token."""

    user: UserIdentity
    access_token: str


class AuthProvider(Protocol):
    """Interface for OAuth sign-in and session lookup."""

    def sign_in_url(self, redirect_to: str) -> str:
        """Return the provider URL that starts the OAuth flow."""

    def exchange_code(self, auth_code: str) -> AuthSession:
        """Exchange an OAuth callback code for a session."""

    def get_user(self, access_token: str) -> UserIdentity | None:
        """Return the user that owns an access token, if valid."""

    def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""


@dataclass
class AuthService:
    """Runs the redirect sign-in flow and keeps history across it.

    The OAuth redirect reloads the browser page, so the recipe history is
    stashed before leaving and restored once when the user comes back.
    """

    provider: AuthProvider
    cache: Cache
    redirect_url: str
    stash_ttl_seconds: int = 600

    async def begin_sign_in(self, state: AppState) -> str:
        """Stash the history and return the provider sign-in URL."""
        self.cache.set(
            _stash_key(state.client_id),
            state.history.snapshot(),
            ttl_seconds=self.stash_ttl_seconds,
        )
        return await asyncio.to_thread(self.provider.sign_in_url, self.redirect_url)

    async def complete_sign_in(self, state: AppState, auth_code: str) -> AuthSession:
        """Exchange the callback code and restore the stashed history."""
        session = await asyncio.to_thread(self.provider.exchange_code, auth_code)
        state.user = session.user
        snapshot = self.cache.pop(_stash_key(state.client_id))
        if isinstance(snapshot, HistorySnapshot):
            state.history.restore(snapshot)
        _logger.info("User signed in: %s", session.user.id)
        return session

    async def resolve_user(
        self, state: AppState, access_token: str | None
    ) -> UserIdentity | None:
        """Return the user behind a bearer token, verified by the provider.

        ``state.user`` only mirrors the last verified user for display; it
        never authorizes a request on its own.
        """
        if not access_token:
            return None
        try:
            user = await asyncio.to_thread(self.provider.get_user, access_token)
        except Exception:
            _logger.warning("Session lookup failed", exc_info=True)
            user = None
        state.user = user
        return user

    async def sign_out(self, state: AppState, access_token: str | None) -> None:
        """Revoke the provider session and forget the user."""
        if access_token:
            try:
                await asyncio.to_thread(self.provider.sign_out, access_token)
            except Exception:
                _logger.warning("Sign-out failed", exc_info=True)
        state.user = None


def _stash_key(client_id: str) -> str:
    return f"history:{client_id}"
