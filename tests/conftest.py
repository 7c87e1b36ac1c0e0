"""Shared test fixtures."""

import json
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from io import BytesIO
from zoneinfo import ZoneInfo

import pytest
from PIL import Image

from recipe_wizard.config import Settings
from recipe_wizard.containers import AppContainer
from recipe_wizard.domain.recipes import (
    Comment,
    CommunityMetrics,
    RecipeResult,
    from_full_json,
)
from recipe_wizard.domain.users import UserIdentity
from recipe_wizard.services.auth import AuthProvider, AuthService, AuthSession
from recipe_wizard.services.cache import InMemoryCache
from recipe_wizard.services.community import CommunityService
from recipe_wizard.services.generation import (
    GenerationClient,
    RecipeGenerationService,
)
from recipe_wizard.services.recipes import (
    CommentRepository,
    ImageStorage,
    RecipeRepository,
    RecipeService,
)
from recipe_wizard.services.states import CachedAppStateStore
from recipe_wizard.services.wizard import WizardService

BASE_TIME = datetime(2026, 10, 1, 9, 0, tzinfo=UTC)


def png_bytes(width: int = 4, height: int = 4, mode: str = "RGBA") -> bytes:
    buffer = BytesIO()
    Image.new(mode, (width, height), "red").save(buffer, format="PNG")
    return buffer.getvalue()


PNG_BYTES = png_bytes()


def recipe_json(dish_name: str = "두부김치", **overrides: object) -> str:
    """Return generator output for a recipe."""
    payload: dict[str, object] = {
        "dishName": dish_name,
        "comment": "남은 재료로 만드는 든든한 한 끼",
        "ingredientsList": "<ul><li>두부 1모</li><li>김치 200g</li></ul>",
        "easyRecipe": "<ol><li>두부를 데친다</li><li>김치를 볶는다</li></ol>",
        "gourmetRecipe": "<ol><li>두부를 굽는다</li><li>김치를 참기름에 볶는다</li></ol>",
        "similarRecipes": [{"title": "김치찌개", "reason": "같은 재료"}],
        "referenceLinks": [{"title": "검색", "url": "https://example.com"}],
    }
    payload.update(overrides)
    return json.dumps(payload, ensure_ascii=False)


def make_recipe(
    dish_name: str = "두부김치",
    recipe_id: int | None = None,
    created_at: datetime | None = None,
    **metrics: int,
) -> RecipeResult:
    return RecipeResult(
        dish_name=dish_name,
        comment="맛있는 요리",
        ingredients_list="<ul><li>두부</li></ul>",
        easy_recipe="<ol><li>굽는다</li></ol>",
        gourmet_recipe="<ol><li>잘 굽는다</li></ol>",
        id=recipe_id,
        created_at=created_at,
        metrics=CommunityMetrics(**metrics),
    )


@dataclass
class FakeGenerationClient(GenerationClient):
    """Fake generator returning queued payloads per schema name."""

    payloads: dict[str, list[object]] = field(default_factory=dict)
    image: bytes | None = PNG_BYTES
    image_error: Exception | None = None
    prompts: list[tuple[str, str]] = field(default_factory=list)

    def queue(self, schema_name: str, payload: object) -> None:
        self.payloads.setdefault(schema_name, []).append(payload)

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
        self.prompts.append((schema_name, prompt))
        queue = self.payloads.get(schema_name) or []
        if not queue:
            raise RuntimeError(f"No payload queued for {schema_name}")
        payload = queue.pop(0)
        if isinstance(payload, BaseException):
            raise payload
        if isinstance(payload, str):
            return payload
        return json.dumps(payload, ensure_ascii=False)

    async def generate_image(self, *, model: str, prompt: str) -> bytes | None:
        if self.image_error is not None:
            raise self.image_error
        return self.image


@dataclass
class InMemoryRecipeRepository(RecipeRepository):
    """In-memory recipes table for tests."""

    recipes: dict[int, RecipeResult] = field(default_factory=dict)
    payloads: list[dict[str, object]] = field(default_factory=list)
    list_calls: list[tuple[str, str, int, int]] = field(default_factory=list)
    fail_inserts: bool = False
    fail_lists: bool = False
    next_id: int = 1

    def add(self, recipe: RecipeResult) -> RecipeResult:
        recipe_id = self.next_id
        self.next_id += 1
        stored = replace(
            recipe,
            id=recipe_id,
            created_at=recipe.created_at or BASE_TIME + timedelta(minutes=recipe_id),
        )
        self.recipes[recipe_id] = stored
        return stored

    def create_recipe(self, payload: dict[str, object]) -> RecipeResult:
        if self.fail_inserts:
            raise RuntimeError("insert failed")
        self.payloads.append(payload)
        full_json = payload["full_json"]
        assert isinstance(full_json, dict)
        return self.add(from_full_json(full_json))

    def get_recipe(self, recipe_id: int) -> RecipeResult | None:
        return self.recipes.get(recipe_id)

    def list_recipes(
        self, search: str, sort: str, offset: int, limit: int
    ) -> list[RecipeResult]:
        self.list_calls.append((search, sort, offset, limit))
        if self.fail_lists:
            raise RuntimeError("list failed")
        rows = [
            recipe
            for recipe in self.recipes.values()
            if search.lower() in recipe.dish_name.lower()
        ]
        if sort == "rating":
            rows.sort(key=lambda item: item.metrics.rating_sum, reverse=True)
        elif sort == "success":
            rows.sort(key=lambda item: item.metrics.vote_success, reverse=True)
        else:
            rows.sort(key=lambda item: (item.created_at, item.id), reverse=True)
        return rows[offset : offset + limit]

    def get_counters(
        self, recipe_id: int, columns: list[str]
    ) -> dict[str, int] | None:
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            return None
        return {column: getattr(recipe.metrics, column) for column in columns}

    def update_counters(self, recipe_id: int, values: dict[str, int]) -> None:
        recipe = self.recipes[recipe_id]
        self.recipes[recipe_id] = replace(
            recipe, metrics=replace(recipe.metrics, **values)
        )


@dataclass
class InMemoryCommentRepository(CommentRepository):
    """In-memory comments table for tests."""

    comments: list[Comment] = field(default_factory=list)

    def list_comments(self, recipe_id: int) -> list[Comment]:
        matching = [item for item in self.comments if item.recipe_id == recipe_id]
        return list(reversed(matching))

    def create_comment(
        self, recipe_id: int, user_id: str, user_email: str | None, content: str
    ) -> Comment:
        comment = Comment(
            id=len(self.comments) + 1,
            recipe_id=recipe_id,
            user_id=user_id,
            user_email=user_email,
            content=content,
            created_at=BASE_TIME,
        )
        self.comments.append(comment)
        return comment


@dataclass
class InMemoryImageStorage(ImageStorage):
    """Records uploads and returns fake public URLs."""

    uploads: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    fail: bool = False

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise RuntimeError("upload failed")
        self.uploads[path] = (data, content_type)
        return f"https://cdn.test/{path}"


@dataclass
class FakeAuthProvider(AuthProvider):
    """Fake OAuth provider with fixed codes and tokens."""

    users_by_token: dict[str, UserIdentity] = field(
        default_factory=lambda: {
            "token-1": UserIdentity(id="user-1", email="cook@example.com")
        }
    )
    codes: dict[str, str] = field(default_factory=lambda: {"code-1": "token-1"})
    signed_out: list[str] = field(default_factory=list)

    def sign_in_url(self, redirect_to: str) -> str:
        return f"https://auth.test/authorize?redirect_to={redirect_to}"

    def exchange_code(self, auth_code: str) -> AuthSession:
        token = self.codes.get(auth_code)
        if token is None:
            raise RuntimeError("invalid code")
        return AuthSession(user=self.users_by_token[token], access_token=token)

    def get_user(self, access_token: str) -> UserIdentity | None:
        return self.users_by_token.get(access_token)

    def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)


def seoul_noon() -> datetime:
    return datetime(2026, 10, 19, 12, 0, tzinfo=ZoneInfo("Asia/Seoul"))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
        community_page_size=3,
        community_debounce_seconds=0,
    )


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def recipe_repository() -> InMemoryRecipeRepository:
    return InMemoryRecipeRepository()


@pytest.fixture
def comment_repository() -> InMemoryCommentRepository:
    return InMemoryCommentRepository()


@pytest.fixture
def image_storage() -> InMemoryImageStorage:
    return InMemoryImageStorage()


@pytest.fixture
def auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def generation_service(
    settings: Settings, generation_client: FakeGenerationClient
) -> RecipeGenerationService:
    return RecipeGenerationService(
        client=generation_client,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
        image_model=settings.openai_image_model,
        clock=seoul_noon,
    )


@pytest.fixture
def recipe_service(
    recipe_repository: InMemoryRecipeRepository,
    comment_repository: InMemoryCommentRepository,
    image_storage: InMemoryImageStorage,
) -> RecipeService:
    return RecipeService(
        repository=recipe_repository,
        comment_repository=comment_repository,
        image_storage=image_storage,
    )


@pytest.fixture
def wizard_service(
    generation_service: RecipeGenerationService, recipe_service: RecipeService
) -> WizardService:
    return WizardService(
        generation_service=generation_service, recipe_service=recipe_service
    )


@pytest.fixture
def community_service(
    settings: Settings, recipe_repository: InMemoryRecipeRepository
) -> CommunityService:
    return CommunityService(
        repository=recipe_repository,
        page_size=settings.community_page_size,
        debounce_seconds=settings.community_debounce_seconds,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    generation_service: RecipeGenerationService,
    recipe_service: RecipeService,
    wizard_service: WizardService,
    community_service: CommunityService,
    auth_provider: FakeAuthProvider,
) -> AppContainer:
    cache = InMemoryCache()
    auth_service = AuthService(
        provider=auth_provider,
        cache=cache,
        redirect_url=f"{settings.public_base_url}/auth/callback",
        stash_ttl_seconds=settings.history_stash_ttl_seconds,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        state_store=CachedAppStateStore(cache),
        generation_service=generation_service,
        recipe_service=recipe_service,
        wizard_service=wizard_service,
        community_service=community_service,
        auth_service=auth_service,
        close_resources=close_resources,
    )
