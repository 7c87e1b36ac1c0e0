"""Services for persisting and rating community recipes."""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import uuid4

from recipe_wizard.domain.recipes import Comment, RecipeResult, to_full_json
from recipe_wizard.domain.users import UserIdentity
from recipe_wizard.services.images import decode_data_url, make_thumbnail, to_jpeg

_logger = logging.getLogger(__name__)

_MIN_RATING = 1
_MAX_RATING = 5


class RecipeRepository(Protocol):
    """Persistence interface for the recipes table."""

    def create_recipe(self, payload: dict[str, object]) -> RecipeResult:
        """Insert a recipe row and return it."""

    def get_recipe(self, recipe_id: int) -> RecipeResult | None:
        """Return a full recipe by id, if present."""

    def list_recipes(
        self, search: str, sort: str, offset: int, limit: int
    ) -> list[RecipeResult]:
        """Return a page of lightweight recipes for the community feed."""

    def get_counters(
        self, recipe_id: int, columns: list[str]
    ) -> dict[str, int] | None:
        """Return current counter values for a recipe."""

    def update_counters(self, recipe_id: int, values: dict[str, int]) -> None:
        """Overwrite counter values for a recipe."""


class CommentRepository(Protocol):
    """Persistence interface for recipe comments."""

    def list_comments(self, recipe_id: int) -> list[Comment]:
        """Return comments for a recipe, newest first."""

    def create_comment(
        self, recipe_id: int, user_id: str, user_email: str | None, content: str
    ) -> Comment:
        """Insert a comment and return it."""


class ImageStorage(Protocol):
    """Object storage for recipe images."""

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes and return their public URL."""


@dataclass
class RecipeService:
    """Application service for saved recipes, counters and comments."""

    repository: RecipeRepository
    comment_repository: CommentRepository
    image_storage: ImageStorage
    thumbnail_max_width: int = 300

    async def save_recipe(self, recipe: RecipeResult) -> RecipeResult:
        """Upload the dish photo and insert the recipe.

        Returns the persisted recipe, or an unsaved copy when the insert
        fails. The in-session image is kept when the upload fails.
        """
        image_url = recipe.image_url
        thumbnail_url = None
        if image_url and image_url.startswith("data:image"):
            image_url, thumbnail_url = await self._upload_images(image_url)

        stored = replace(recipe, image_url=image_url, thumbnail_url=thumbnail_url)
        fallback_image = image_url or recipe.image_url
        payload = {
            "dish_name": stored.dish_name,
            "image_url": stored.image_url,
            "thumbnail_url": stored.thumbnail_url,
            "comment": stored.comment,
            "full_json": to_full_json(stored),
            "download_count": 0,
            "rating_sum": 0,
            "rating_count": 0,
            "vote_success": 0,
            "vote_fail": 0,
        }
        try:
            created = await asyncio.to_thread(self.repository.create_recipe, payload)
        except Exception:
            _logger.exception(
                "Failed to save recipe", extra={"dish": recipe.dish_name}
            )
            return replace(stored, image_url=fallback_image)
        return replace(created, image_url=created.image_url or fallback_image)

    async def get_recipe(self, recipe_id: int) -> RecipeResult | None:
        """Return a full recipe by id."""
        return await asyncio.to_thread(self.repository.get_recipe, recipe_id)

    async def record_download(self, recipe_id: int) -> None:
        """Increment the download counter."""
        await self._bump(recipe_id, {"download_count": 1})

    async def rate(self, recipe_id: int, score: int) -> RecipeResult | None:
        """Add a 1-5 star rating and return the refreshed recipe."""
        if not _MIN_RATING <= score <= _MAX_RATING:
            raise ValueError("Rating must be between 1 and 5")
        await self._bump(recipe_id, {"rating_sum": score, "rating_count": 1})
        return await self.get_recipe(recipe_id)

    async def vote(
        self, recipe_id: int, success_delta: int, fail_delta: int
    ) -> RecipeResult | None:
        """Apply success/fail vote deltas and return the refreshed recipe."""
        await self._bump(
            recipe_id, {"vote_success": success_delta, "vote_fail": fail_delta}
        )
        return await self.get_recipe(recipe_id)

    async def list_comments(self, recipe_id: int) -> list[Comment]:
        """Return comments for a recipe."""
        return await asyncio.to_thread(
            self.comment_repository.list_comments, recipe_id
        )

    async def add_comment(
        self, recipe_id: int, user: UserIdentity, content: str
    ) -> Comment:
        """Add a comment from a signed-in user."""
        text = content.strip()
        if not text:
            raise ValueError("Comment must not be empty")
        return await asyncio.to_thread(
            self.comment_repository.create_comment,
            recipe_id,
            user.id,
            user.email,
            text,
        )

    async def _bump(self, recipe_id: int, deltas: dict[str, int]) -> None:
        """Read-modify-write counters; failures are logged and ignored."""
        try:
            current = await asyncio.to_thread(
                self.repository.get_counters, recipe_id, list(deltas)
            )
            if current is None:
                return
            values = {
                column: max(0, int(current.get(column) or 0) + delta)
                for column, delta in deltas.items()
            }
            await asyncio.to_thread(self.repository.update_counters, recipe_id, values)
        except Exception:
            _logger.exception(
                "Failed to update recipe counters",
                extra={"recipe_id": recipe_id, "columns": list(deltas)},
            )

    async def _upload_images(self, data_url: str) -> tuple[str | None, str | None]:
        """Upload the full image and its thumbnail concurrently."""
        try:
            _, raw = decode_data_url(data_url)
            full_bytes = to_jpeg(raw)
            thumb_bytes = make_thumbnail(raw, max_width=self.thumbnail_max_width)
        except Exception:
            _logger.exception("Failed to prepare recipe image")
            return None, None
        full_url, thumb_url = await asyncio.gather(
            self._upload(full_bytes, "full"),
            self._upload(thumb_bytes, "thumb"),
        )
        return full_url, thumb_url

    async def _upload(self, data: bytes, prefix: str) -> str | None:
        path = f"{prefix}_{int(time.time() * 1000)}_{uuid4().hex[:7]}.jpg"
        try:
            return await asyncio.to_thread(
                self.image_storage.upload, path, data, "image/jpeg"
            )
        except Exception:
            _logger.exception("Image upload failed", extra={"path": path})
            return None
