"""Per-client application state and its store."""

from dataclasses import dataclass, field
from typing import Protocol

from recipe_wizard.domain.choices import ConvenienceCategory, UserChoices
from recipe_wizard.domain.community import CommunityCache
from recipe_wizard.domain.navigation import NavEntry, Step, Tab
from recipe_wizard.domain.suggestions import Suggestions, TopicItem
from recipe_wizard.domain.users import UserIdentity
from recipe_wizard.services.cache import Cache
from recipe_wizard.services.history import RecipeHistory
from recipe_wizard.services.navigation import NavigationStack, to_query


@dataclass
class AppState:
    """Everything one browser client sees, owned by a single object."""

    client_id: str
    choices: UserChoices = field(default_factory=UserChoices)
    step: Step = Step.WELCOME
    tab: Tab = "home"
    history: RecipeHistory = field(default_factory=RecipeHistory)
    navigation: NavigationStack = field(default_factory=NavigationStack)
    community: CommunityCache = field(default_factory=CommunityCache)
    suggestions: Suggestions = field(default_factory=Suggestions)
    topic_items: list[TopicItem] = field(default_factory=list)
    convenience_category: ConvenienceCategory = "meal"
    is_fetching_items: bool = False
    error: str | None = None
    user: UserIdentity | None = None

    @property
    def url(self) -> str:
        if self.step is Step.LOADING:
            return to_query(self.navigation.current)
        return to_query(NavEntry(step=self.step, tab=self.tab))


class AppStateStore(Protocol):
    """Lookup of application state by client id."""

    def get(self, client_id: str) -> AppState | None:
        """Return the state for a client, if present."""

    def get_or_create(self, client_id: str) -> AppState:
        """Return the state for a client, creating a fresh one if needed."""


@dataclass
class CachedAppStateStore(AppStateStore):
    """Keeps client states in a cache with a sliding TTL."""

    cache: Cache
    ttl_seconds: int = 86400

    def get(self, client_id: str) -> AppState | None:
        """Return the state for a client and extend its lifetime."""
        cached = self.cache.get(_state_key(client_id))
        if not isinstance(cached, AppState):
            return None
        self.cache.set(_state_key(client_id), cached, ttl_seconds=self.ttl_seconds)
        return cached

    def get_or_create(self, client_id: str) -> AppState:
        """Return the state for a client, creating a fresh one if needed."""
        state = self.get(client_id)
        if state is None:
            state = AppState(client_id=client_id)
            self.cache.set(_state_key(client_id), state, ttl_seconds=self.ttl_seconds)
        return state


def _state_key(client_id: str) -> str:
    return f"state:{client_id}"
