"""Recipe and enrichment generation using LLMs."""

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from recipe_wizard.domain.choices import ConvenienceCategory, UserChoices
from recipe_wizard.domain.recipes import RecipeDraft, RecipeResult
from recipe_wizard.domain.suggestions import Suggestions, TopicItem, TopicList
from recipe_wizard.services.images import to_data_url

_logger = logging.getLogger(__name__)

_SEOUL = ZoneInfo("Asia/Seoul")
_JSON_BLOCK = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")
_TIME_SLOTS = ((5, "야식"), (11, "아침"), (14, "점심"), (17, "오후"), (22, "저녁"))

SUGGESTIONS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "subIngredients": {"type": "array", "items": {"type": "string"}},
        "sauces": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["subIngredients", "sauces"],
    "additionalProperties": False,
}

TOPICS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "desc": {"type": "string"},
                },
                "required": ["name", "desc"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

RECIPE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "dishName": {"type": "string"},
        "comment": {"type": "string"},
        "ingredientsList": {"type": "string"},
        "easyRecipe": {"type": "string"},
        "gourmetRecipe": {"type": "string"},
        "similarRecipes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "reason": {"type": "string"},
                },
                "required": ["title", "reason"],
                "additionalProperties": False,
            },
        },
        "referenceLinks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "url": {"type": "string"},
                },
                "required": ["title", "url"],
                "additionalProperties": False,
            },
        },
    },
    "required": [
        "dishName",
        "comment",
        "ingredientsList",
        "easyRecipe",
        "gourmetRecipe",
        "similarRecipes",
        "referenceLinks",
    ],
    "additionalProperties": False,
}

_MODE_INSTRUCTIONS = {
    "fridge": (
        "냉장고에 남은 재료들을 남김없이 활용하면서도 맛의 조화를 이루는 "
        "'파먹기' 레시피를 제안해줘."
    ),
    "seasonal": (
        "지금이 아니면 맛보기 힘든 제철 식재료의 풍미와 영양을 극대화하는 "
        "품격 있는 레시피를 제안해줘."
    ),
    "convenience": (
        "편의점에서 쉽게 구할 수 있는 가공식품과 간편식을 조합해 만드는 "
        "놀라운 '꿀조합' 퓨전 레시피를 제안해줘."
    ),
}


class RecipeGenerationError(RuntimeError):
    """Raised when the generator cannot produce a usable recipe."""


class GenerationClient(Protocol):
    """Interface for a generative content provider."""

    async def generate_json(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        """Return model text constrained to the given JSON schema."""

    async def generate_image(self, *, model: str, prompt: str) -> bytes | None:
        """Return raw image bytes for the prompt, if any were produced."""


def _seoul_now() -> datetime:
    return datetime.now(tz=_SEOUL)


@dataclass
class RecipeGenerationService:
    """Builds prompts, calls the generator and validates what comes back.

    Enrichment calls (suggestions, seasonal items, convenience topics and the
    dish photo) are best effort and never raise; only recipe generation
    surfaces failures, as RecipeGenerationError.
    """

    client: GenerationClient
    model: str
    reasoning_effort: str | None
    store: bool
    image_model: str
    clock: Callable[[], datetime] = field(default=_seoul_now)

    async def fetch_suggestions(self, ingredients: str) -> Suggestions:
        """Suggest six side ingredients and six sauces for the ingredients."""
        prompt = (
            f'재료: "{ingredients}". 이 재료들과 어울리는 부재료 6개, '
            "양념 6개를 한국어로 추천해줘. JSON 형식으로 반환해."
        )
        try:
            raw = await self._generate(prompt, SUGGESTIONS_SCHEMA, "suggestions")
            return Suggestions.model_validate(raw)
        except Exception:
            _logger.exception("Suggestions fetch failed")
            return Suggestions()

    async def fetch_seasonal_items(
        self, excluded: list[str] | None = None
    ) -> list[TopicItem]:
        """List eight ingredients in season this month in Korea."""
        month = self.clock().month
        prompt = (
            f"대한민국의 {month}월에 가장 맛있는 제철 식재료 8개를 알려줘. "
            f"이미 추천한 재료들({', '.join(excluded or [])})은 제외해줘. "
            "각 재료별로 한 줄 요약(맛이나 영양)을 포함해줘. JSON 형식으로만 응답해줘."
        )
        return await self._fetch_topics(prompt, action="seasonal")

    async def fetch_convenience_topics(
        self,
        excluded: list[str] | None = None,
        category: ConvenienceCategory = "meal",
    ) -> list[TopicItem]:
        """List six convenience-store combinations for the time of day."""
        label = "식사" if category == "meal" else "간식"
        prompt = (
            f"편의점 재료 꿀조합 레시피 6개를 추천해줘. 카테고리: {label}. "
            f"시간대: {time_context(self.clock().hour)}. "
            f"제외할 재료: {', '.join(excluded or [])}. "
            "JSON 형식 { items: [{ name, desc }] } 로 반환해."
        )
        return await self._fetch_topics(prompt, action="convenience")

    async def generate_recipe(
        self, choices: UserChoices, regenerate: bool = False
    ) -> RecipeResult:
        """Generate a recipe for the collected choices."""
        prompt = build_recipe_prompt(choices, regenerate=regenerate)
        try:
            raw = await self._generate(prompt, RECIPE_SCHEMA, "recipe")
        except Exception as exc:
            raise RecipeGenerationError("레시피 생성에 실패했습니다.") from exc
        if raw is None:
            raise RecipeGenerationError("AI 응답 파싱 실패")
        try:
            draft = RecipeDraft.model_validate(raw)
        except ValidationError as exc:
            raise RecipeGenerationError("AI 응답 파싱 실패") from exc
        _logger.info(
            "Generated recipe: dish=%s mode=%s", draft.dish_name, choices.mode
        )
        return RecipeResult.from_draft(draft)

    async def generate_dish_image(self, dish_name: str) -> str | None:
        """Generate a food photo and return it as a data URL."""
        prompt = (
            f"Professional high-end food photography of {dish_name}. "
            "Studio lighting, extremely appetizing, macro shot, blurred background, "
            "vibrant natural colors. No text, no watermark."
        )
        try:
            image_bytes = await self.client.generate_image(
                model=self.image_model, prompt=prompt
            )
        except Exception:
            _logger.exception("Image generation failed", extra={"dish": dish_name})
            return None
        if not image_bytes:
            return None
        return to_data_url(image_bytes)

    async def _fetch_topics(self, prompt: str, *, action: str) -> list[TopicItem]:
        try:
            raw = await self._generate(prompt, TOPICS_SCHEMA, action)
            return TopicList.model_validate(raw or {}).items
        except Exception:
            _logger.exception("Topic fetch failed", extra={"action": action})
            return []

    async def _generate(
        self, prompt: str, schema: dict[str, object], schema_name: str
    ) -> object:
        text = await self.client.generate_json(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=prompt,
            schema=schema,
            schema_name=schema_name,
        )
        return parse_json_block(text)


def parse_json_block(text: str | None) -> object:
    """Parse the first JSON object or array in model text, or return None."""
    if not text:
        return None
    match = _JSON_BLOCK.search(text)
    candidate = match.group(0) if match else text
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        _logger.warning("Could not parse model output as JSON")
        return None


def time_context(hour: int) -> str:
    """Name the meal slot for an hour of the day."""
    for end, label in _TIME_SLOTS:
        if hour < end:
            return label
    return "야식"


def build_recipe_prompt(choices: UserChoices, regenerate: bool = False) -> str:
    """Build the recipe generation prompt from the wizard choices."""
    retry_hint = (
        "참고: 이전에 제안했던 것과는 완전히 다른 새로운 아이디어의 레시피를 제안해줘."
        if regenerate
        else ""
    )
    instruction = _MODE_INSTRUCTIONS.get(choices.mode, "")
    sauces = ", ".join(choices.sauces) or "기본 양념"
    tools = ", ".join(choices.tools) or "제한 없음"
    return f"""[Mission: {choices.mode.upper()} MODE RECIPE GENERATION]
지침: {instruction}

재료 현황:
- 주재료: {choices.ingredients}
- 양념/소스: {sauces}
- 요리 스타일: {choices.cuisine}
- 함께 먹는 사람: {choices.partner}
- 상황/테마: {choices.theme}
- 사용 가능한 조리 도구: {tools}
- 사용자 요리 수준: {choices.level}

{retry_hint}

[요구사항]
1. 모든 응답은 친절한 한국어로 작성해.
2. dishName은 매력적인 요리 이름을 지어줘.
3. ingredientsList는 반드시 <ul><li> 태그를 사용한 HTML 형식이어야 해.
4. easyRecipe와 gourmetRecipe는 각각 5~7단계 정도의 상세 조리법을 HTML <ol><li> 태그 형식으로 작성해.
5. similarRecipes는 3가지를 추천해줘.
"""
