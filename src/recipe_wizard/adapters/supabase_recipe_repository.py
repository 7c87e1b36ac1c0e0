"""Supabase repository for community recipes."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from recipe_wizard.domain.recipes import CommunityMetrics, RecipeResult, from_full_json
from recipe_wizard.services.recipes import RecipeRepository

_LIST_COLUMNS = (
    "id, dish_name, image_url, thumbnail_url, comment, created_at, "
    "rating_sum, rating_count, vote_success, vote_fail, download_count, "
    "comments(count)"
)
_METRIC_COLUMNS = (
    "rating_sum",
    "rating_count",
    "vote_success",
    "vote_fail",
    "download_count",
)
_SORT_COLUMNS = {"rating": "rating_sum", "success": "vote_success"}
_UNTITLED = "이름 없는 레시피"
_NO_DESCRIPTION = "설명이 없습니다."


@dataclass
class SupabaseRecipeRepository(RecipeRepository):
    """Supabase-backed repository for the recipes table."""

    client: Client

    def create_recipe(self, payload: dict[str, object]) -> RecipeResult:
        """Insert a recipe row and return it."""
        response = self.client.table("recipes").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create recipe")
        return _parse_full(response.data[0])

    def get_recipe(self, recipe_id: int) -> RecipeResult | None:
        """Return a full recipe by id, if present."""
        response = (
            self.client.table("recipes")
            .select("*, comments(count)")
            .eq("id", recipe_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_full(response.data[0])

    def list_recipes(
        self, search: str, sort: str, offset: int, limit: int
    ) -> list[RecipeResult]:
        """Return one feed page without the heavy full_json column."""
        query = self.client.table("recipes").select(_LIST_COLUMNS)
        if search.strip():
            query = query.ilike("dish_name", f"%{search.strip()}%")
        column = _SORT_COLUMNS.get(sort)
        if column:
            query = query.order(column, desc=True)
        else:
            # comment counts are re-sorted client-side
            query = query.order("created_at", desc=True).order("id", desc=True)
        response = query.range(offset, offset + limit - 1).execute()
        return [_parse_summary(row) for row in response.data or []]

    def get_counters(
        self, recipe_id: int, columns: list[str]
    ) -> dict[str, int] | None:
        """Return current counter values for a recipe."""
        response = (
            self.client.table("recipes")
            .select(", ".join(columns))
            .eq("id", recipe_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return {column: int(row.get(column) or 0) for column in columns}

    def update_counters(self, recipe_id: int, values: dict[str, int]) -> None:
        """Overwrite counter values for a recipe."""
        self.client.table("recipes").update(values).eq("id", recipe_id).execute()


def _parse_summary(row: dict[str, object]) -> RecipeResult:
    """Parse a lightweight feed row."""
    image_url = row.get("image_url") or None
    return RecipeResult(
        dish_name=str(row.get("dish_name") or _UNTITLED),
        comment=str(row.get("comment") or _NO_DESCRIPTION),
        ingredients_list="",
        easy_recipe="",
        gourmet_recipe="",
        image_url=image_url,
        thumbnail_url=row.get("thumbnail_url") or image_url,
        id=int(row["id"]),
        created_at=_parse_timestamp(row.get("created_at")),
        metrics=_parse_metrics(row),
    )


def _parse_full(row: dict[str, object]) -> RecipeResult:
    """Parse a row with its full_json body."""
    payload = row.get("full_json")
    if not isinstance(payload, dict):
        return _parse_summary(row)
    merged = {
        "dishName": row.get("dish_name") or _UNTITLED,
        "comment": row.get("comment") or "",
        "easyRecipe": "",
        "gourmetRecipe": "",
        **payload,
        "imageUrl": row.get("image_url") or payload.get("imageUrl"),
        "thumbnailUrl": row.get("thumbnail_url") or payload.get("thumbnailUrl"),
    }
    return from_full_json(
        merged,
        recipe_id=int(row["id"]),
        created_at=_parse_timestamp(row.get("created_at")),
        metrics=_parse_metrics(row),
    )


def _parse_metrics(row: dict[str, object]) -> CommunityMetrics:
    counts = {column: int(row.get(column) or 0) for column in _METRIC_COLUMNS}
    return CommunityMetrics(**counts, comment_count=_comment_count(row))


def _comment_count(row: dict[str, object]) -> int:
    """Read the embedded comments(count) aggregate."""
    embedded = row.get("comments")
    if isinstance(embedded, list) and embedded:
        first = embedded[0]
        if isinstance(first, dict):
            return int(first.get("count") or 0)
    return 0


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
