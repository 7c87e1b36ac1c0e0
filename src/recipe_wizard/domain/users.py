"""Domain models for signed-in users."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserIdentity:
    """Minimal identity decoded from the auth provider."""

    id: str
    email: str | None

    @property
    def display_name(self) -> str:
        if not self.email:
            return "guest"
        return self.email.split("@", maxsplit=1)[0]
