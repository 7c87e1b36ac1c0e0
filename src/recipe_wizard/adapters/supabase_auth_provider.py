"""Google sign-in through Supabase Auth."""

from dataclasses import dataclass

from supabase import Client

from recipe_wizard.domain.users import UserIdentity
from recipe_wizard.services.auth import AuthProvider, AuthSession


@dataclass
class SupabaseAuthProvider(AuthProvider):
    """Supabase Auth implementation of the OAuth provider.

    The PKCE code verifier lives in the client's auth storage, so the
    callback must be handled by the same process that issued the sign-in URL.
    """

    client: Client
    provider: str = "google"

    def sign_in_url(self, redirect_to: str) -> str:
        """Return the provider consent URL."""
        response = self.client.auth.sign_in_with_oauth(
            {
                "provider": self.provider,
                "options": {
                    "redirect_to": redirect_to,
                    "query_params": {"access_type": "offline", "prompt": "consent"},
                },
            }
        )
        return response.url

    def exchange_code(self, auth_code: str) -> AuthSession:
        """Exchange the callback code for a session."""
        response = self.client.auth.exchange_code_for_session(
            {"auth_code": auth_code}
        )
        if response.session is None or response.user is None:
            raise RuntimeError("Supabase returned no session for the auth code")
        return AuthSession(
            user=_to_identity(response.user),
            access_token=response.session.access_token,
        )

    def get_user(self, access_token: str) -> UserIdentity | None:
        """Return the user behind an access token."""
        response = self.client.auth.get_user(access_token)
        if response is None or response.user is None:
            return None
        return _to_identity(response.user)

    def sign_out(self, access_token: str) -> None:
        """Revoke the session for an access token."""
        self.client.auth.admin.sign_out(access_token)


def _to_identity(user: object) -> UserIdentity:
    return UserIdentity(
        id=str(getattr(user, "id", "")),
        email=getattr(user, "email", None),
    )
