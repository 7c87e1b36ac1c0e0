"""Models for enrichment responses from the generator."""

from pydantic import BaseModel, ConfigDict, Field


class Suggestions(BaseModel):
    """Complementary ingredients and sauces for the entered ingredients."""

    model_config = ConfigDict(populate_by_name=True)

    sub_ingredients: list[str] = Field(default_factory=list, alias="subIngredients")
    sauces: list[str] = Field(default_factory=list)


class TopicItem(BaseModel):
    """Seasonal ingredient or convenience-store combination."""

    name: str
    desc: str = ""


class TopicList(BaseModel):
    """Structured output wrapper for topic items."""

    items: list[TopicItem] = Field(default_factory=list)
