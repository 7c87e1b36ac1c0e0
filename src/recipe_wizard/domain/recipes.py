"""Domain models for generated and persisted recipes."""

from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SimilarRecipe(BaseModel):
    """A related dish the generator recommends."""

    model_config = ConfigDict(frozen=True)

    title: str
    reason: str


class ReferenceLink(BaseModel):
    """An external reference for a generated recipe."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str


class RecipeDraft(BaseModel):
    """Structured output returned by the recipe generator."""

    model_config = ConfigDict(populate_by_name=True)

    dish_name: str = Field(alias="dishName", min_length=1)
    comment: str
    ingredients_list: str = Field(default="", alias="ingredientsList")
    easy_recipe: str = Field(alias="easyRecipe")
    gourmet_recipe: str = Field(alias="gourmetRecipe")
    similar_recipes: list[SimilarRecipe] = Field(
        default_factory=list, alias="similarRecipes"
    )
    reference_links: list[ReferenceLink] = Field(
        default_factory=list, alias="referenceLinks"
    )


@dataclass(frozen=True)
class CommunityMetrics:
    """Aggregated community counters for a persisted recipe."""

    rating_sum: int = 0
    rating_count: int = 0
    vote_success: int = 0
    vote_fail: int = 0
    download_count: int = 0
    comment_count: int = 0

    @property
    def average_rating(self) -> float:
        if not self.rating_sum or not self.rating_count:
            return 0.0
        return round(self.rating_sum / self.rating_count, 1)


@dataclass(frozen=True)
class RecipeResult:
    """A generated recipe, optionally persisted to the community table."""

    dish_name: str
    comment: str
    ingredients_list: str
    easy_recipe: str
    gourmet_recipe: str
    similar_recipes: tuple[SimilarRecipe, ...] = ()
    reference_links: tuple[ReferenceLink, ...] = ()
    image_url: str | None = None
    thumbnail_url: str | None = None
    id: int | None = None
    created_at: datetime | None = None
    metrics: CommunityMetrics = field(default_factory=CommunityMetrics)

    @classmethod
    def from_draft(cls, draft: RecipeDraft) -> "RecipeResult":
        """Build a result from validated generator output."""
        return cls(
            dish_name=draft.dish_name,
            comment=draft.comment,
            ingredients_list=draft.ingredients_list,
            easy_recipe=draft.easy_recipe,
            gourmet_recipe=draft.gourmet_recipe,
            similar_recipes=tuple(draft.similar_recipes),
            reference_links=tuple(draft.reference_links),
        )


@dataclass(frozen=True)
class Comment:
    """A user comment on a community recipe."""

    id: int
    recipe_id: int
    user_id: str
    user_email: str | None
    content: str
    created_at: datetime | None


def to_full_json(recipe: RecipeResult) -> dict[str, object]:
    """Serialize the recipe body stored in the full_json column."""
    return {
        "dishName": recipe.dish_name,
        "comment": recipe.comment,
        "ingredientsList": recipe.ingredients_list,
        "easyRecipe": recipe.easy_recipe,
        "gourmetRecipe": recipe.gourmet_recipe,
        "similarRecipes": [item.model_dump() for item in recipe.similar_recipes],
        "referenceLinks": [item.model_dump() for item in recipe.reference_links],
        "imageUrl": recipe.image_url,
        "thumbnailUrl": recipe.thumbnail_url,
    }


def from_full_json(
    payload: dict[str, object],
    *,
    recipe_id: int | None = None,
    created_at: datetime | None = None,
    metrics: CommunityMetrics | None = None,
) -> RecipeResult:
    """Rebuild a recipe from a full_json payload and row metadata."""
    draft = RecipeDraft.model_validate(payload)
    base = RecipeResult.from_draft(draft)
    image_url = payload.get("imageUrl")
    thumbnail_url = payload.get("thumbnailUrl")
    return RecipeResult(
        dish_name=base.dish_name,
        comment=base.comment,
        ingredients_list=base.ingredients_list,
        easy_recipe=base.easy_recipe,
        gourmet_recipe=base.gourmet_recipe,
        similar_recipes=base.similar_recipes,
        reference_links=base.reference_links,
        image_url=image_url if isinstance(image_url, str) else None,
        thumbnail_url=thumbnail_url if isinstance(thumbnail_url, str) else None,
        id=recipe_id,
        created_at=created_at,
        metrics=metrics or CommunityMetrics(),
    )
