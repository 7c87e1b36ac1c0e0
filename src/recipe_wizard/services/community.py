"""Paginated, searchable community feed with a per-client cache."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from recipe_wizard.domain.community import SORT_KEYS, CommunityCache, SortKey
from recipe_wizard.domain.recipes import RecipeResult

_logger = logging.getLogger(__name__)

COMMUNITY_ERROR_MESSAGE = "레시피를 불러오는 중 오류가 발생했습니다."

_EPOCH = datetime.min.replace(tzinfo=UTC)


class CommunityRepository(Protocol):
    """Read interface for the community feed."""

    def list_recipes(
        self, search: str, sort: str, offset: int, limit: int
    ) -> list[RecipeResult]:
        """Return a page of lightweight recipes."""


@dataclass
class CommunityService:
    """Loads community pages into a CommunityCache.

    At most one request is in flight per cache. Query changes bump the cache
    generation, so a page fetched for an older query is dropped on arrival.
    """

    repository: CommunityRepository
    page_size: int = 8
    debounce_seconds: float = 0.4

    async def open(self, cache: CommunityCache) -> None:
        """Load the first page unless the cache already holds a feed."""
        if cache.loaded or cache.is_fetching:
            return
        await self.refresh(cache)

    async def refresh(self, cache: CommunityCache) -> bool:
        """Fetch page zero and replace the list.

        When a fetch is already running the refresh is queued behind it.
        """
        if cache.is_fetching:
            cache.refresh_pending = True
            return False
        await self._fetch(cache, reset=True)
        return True

    async def load_more(self, cache: CommunityCache) -> bool:
        """Fetch the next page, unless one is in flight or the feed ended."""
        if cache.is_fetching or not cache.has_more:
            return False
        await self._fetch(cache, reset=False)
        return True

    def set_search(
        self, cache: CommunityCache, term: str
    ) -> asyncio.Task[None] | None:
        """Change the search term, clear the list and schedule a refetch."""
        if term == cache.search:
            return None
        cache.search = term
        cache.recipes = []
        self._invalidate(cache)
        return self._schedule_refresh(cache)

    def set_sort(
        self, cache: CommunityCache, sort: SortKey
    ) -> asyncio.Task[None] | None:
        """Change the sort key, re-order the loaded list and schedule a refetch."""
        if sort not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {sort}")
        if sort == cache.sort:
            return None
        cache.sort = sort
        cache.recipes = sort_recipes(cache.recipes, sort)
        self._invalidate(cache)
        return self._schedule_refresh(cache)

    @staticmethod
    def save_scroll(cache: CommunityCache, offset: int) -> None:
        """Remember where the user was in the feed."""
        cache.scroll_offset = max(0, offset)

    @staticmethod
    def _invalidate(cache: CommunityCache) -> None:
        cache.generation += 1
        cache.page = 0
        cache.has_more = True
        cache.scroll_offset = 0
        cache.error = None

    def _schedule_refresh(self, cache: CommunityCache) -> asyncio.Task[None]:
        """Debounce refetches: a newer query change cancels the pending one."""
        if cache.refresh_task is not None and not cache.refresh_task.done():
            cache.refresh_task.cancel()
        cache.refresh_task = asyncio.create_task(self._debounced_refresh(cache))
        return cache.refresh_task

    async def _debounced_refresh(self, cache: CommunityCache) -> None:
        await asyncio.sleep(self.debounce_seconds)
        await self.refresh(cache)

    async def _fetch(self, cache: CommunityCache, *, reset: bool) -> None:
        cache.is_fetching = True
        generation = cache.generation
        page = 0 if reset else cache.page
        try:
            rows = await asyncio.to_thread(
                self.repository.list_recipes,
                cache.search,
                cache.sort,
                page * self.page_size,
                self.page_size,
            )
        except Exception:
            _logger.exception(
                "Community fetch failed",
                extra={"page": page, "search": cache.search, "sort": cache.sort},
            )
            rows = None
        finally:
            cache.is_fetching = False

        if generation != cache.generation:
            _logger.info("Dropping stale community page %s", page)
        elif rows is None:
            cache.error = COMMUNITY_ERROR_MESSAGE
        else:
            self._apply(cache, rows, reset=reset)

        if cache.refresh_pending:
            cache.refresh_pending = False
            await self._fetch(cache, reset=True)

    def _apply(
        self, cache: CommunityCache, rows: list[RecipeResult], *, reset: bool
    ) -> None:
        cache.has_more = len(rows) >= self.page_size
        loaded = [] if reset else cache.recipes
        seen = {recipe.id for recipe in loaded}
        fresh: list[RecipeResult] = []
        for recipe in rows:
            if recipe.id in seen:
                continue
            seen.add(recipe.id)
            fresh.append(recipe)
        # rows already on screen keep their position
        cache.recipes = [*loaded, *sort_recipes(fresh, cache.sort)]
        cache.page = 1 if reset else cache.page + 1
        cache.loaded = True
        cache.error = None


def sort_recipes(recipes: list[RecipeResult], sort: str) -> list[RecipeResult]:
    """Order recipes client-side by the feed sort key; ties keep their order."""
    if sort == "rating":
        return sorted(recipes, key=lambda item: item.metrics.rating_sum, reverse=True)
    if sort == "success":
        return sorted(
            recipes, key=lambda item: item.metrics.vote_success, reverse=True
        )
    if sort == "comments":
        return sorted(
            recipes, key=lambda item: item.metrics.comment_count, reverse=True
        )
    return sorted(
        recipes,
        key=lambda item: (item.created_at or _EPOCH, item.id or 0),
        reverse=True,
    )
