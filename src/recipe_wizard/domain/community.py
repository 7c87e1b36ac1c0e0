"""Domain models for the community feed."""

import asyncio
from dataclasses import dataclass, field
from typing import Literal

from recipe_wizard.domain.recipes import RecipeResult

SortKey = Literal["latest", "rating", "success", "comments"]

SORT_KEYS: frozenset[str] = frozenset({"latest", "rating", "success", "comments"})


@dataclass
class CommunityCache:
    """Fetched community recipes plus the query and pagination state."""

    recipes: list[RecipeResult] = field(default_factory=list)
    search: str = ""
    sort: SortKey = "latest"
    page: int = 0
    has_more: bool = True
    scroll_offset: int = 0
    loaded: bool = False
    is_fetching: bool = False
    refresh_pending: bool = False
    generation: int = 0
    error: str | None = None
    refresh_task: asyncio.Task[None] | None = field(
        default=None, repr=False, compare=False
    )
