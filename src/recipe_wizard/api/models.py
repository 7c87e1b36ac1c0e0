"""Request bodies for the recipe wizard API."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from recipe_wizard.domain.choices import ConvenienceCategory, Mode
from recipe_wizard.domain.community import SortKey
from recipe_wizard.domain.navigation import Tab


class ModeRequest(BaseModel):
    mode: Mode
    category: ConvenienceCategory = "meal"


class ChoicesUpdate(BaseModel):
    """Partial update of the wizard form; unset fields are left alone."""

    model_config = ConfigDict(extra="forbid")

    ingredients: str | None = None
    sauces: list[str] | None = None
    cuisine: str | None = None
    partner: str | None = None
    theme: str | None = None
    tools: list[str] | None = None
    level: str | None = None


class ToggleRequest(BaseModel):
    field: Literal["ingredients", "sauces", "tools"]
    value: str = Field(min_length=1)


class GenerateRequest(BaseModel):
    regenerate: bool = False


class TabRequest(BaseModel):
    tab: Tab


class PopStateRequest(BaseModel):
    query: str = ""


class CommunityQuery(BaseModel):
    search: str | None = None
    sort: SortKey | None = None


class ScrollRequest(BaseModel):
    offset: int = Field(ge=0)


class RatingRequest(BaseModel):
    score: int = Field(ge=1, le=5)


class VoteRequest(BaseModel):
    success_delta: int = Field(default=0, ge=-1, le=1)
    fail_delta: int = Field(default=0, ge=-1, le=1)


class CommentRequest(BaseModel):
    content: str = Field(min_length=1, max_length=1000)


class AuthCallbackRequest(BaseModel):
    code: str = Field(min_length=1)
