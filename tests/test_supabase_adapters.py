"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from types import SimpleNamespace

import pytest

from recipe_wizard.adapters.supabase_auth_provider import SupabaseAuthProvider
from recipe_wizard.adapters.supabase_comment_repository import (
    SupabaseCommentRepository,
)
from recipe_wizard.adapters.supabase_image_storage import SupabaseImageStorage
from recipe_wizard.adapters.supabase_recipe_repository import (
    SupabaseRecipeRepository,
)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": []}
    )
    last_payload: object | None = None
    last_columns: str | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    orders: list[tuple[str, bool]] = field(default_factory=list)
    last_range: tuple[int, int] | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, columns: str) -> "FakeTable":
        self._action = "select"
        self.last_columns = columns
        self.orders = []
        self.last_range = None
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def ilike(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.orders.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.last_range = (start, end)
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeBucket:
    uploads: list[tuple[str, bytes, dict[str, str]]] = field(default_factory=list)

    def upload(self, path: str, file: bytes, file_options: dict[str, str]) -> None:
        self.uploads.append((path, file, file_options))

    def get_public_url(self, path: str) -> str:
        return f"https://example.supabase.co/storage/v1/object/public/recipe-images/{path}"


@dataclass
class FakeStorage:
    buckets: dict[str, FakeBucket] = field(default_factory=dict)

    def from_(self, bucket: str) -> FakeBucket:
        return self.buckets.setdefault(bucket, FakeBucket())


@dataclass
class FakeAdminAuth:
    signed_out: list[str] = field(default_factory=list)

    def sign_out(self, jwt: str) -> None:
        self.signed_out.append(jwt)


@dataclass
class FakeAuth:
    admin: FakeAdminAuth = field(default_factory=FakeAdminAuth)
    last_oauth: dict[str, object] | None = None

    def sign_in_with_oauth(self, credentials: dict[str, object]) -> SimpleNamespace:
        self.last_oauth = credentials
        return SimpleNamespace(provider="google", url="https://auth.test/authorize")

    def exchange_code_for_session(self, params: dict[str, str]) -> SimpleNamespace:
        if params["auth_code"] != "good":
            return SimpleNamespace(session=None, user=None)
        user = SimpleNamespace(id="user-1", email="cook@example.com")
        return SimpleNamespace(
            session=SimpleNamespace(access_token="jwt-1"), user=user
        )

    def get_user(self, jwt: str) -> SimpleNamespace | None:
        if jwt != "jwt-1":
            return None
        return SimpleNamespace(user=SimpleNamespace(id="user-1", email=None))


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)
    storage: FakeStorage = field(default_factory=FakeStorage)
    auth: FakeAuth = field(default_factory=FakeAuth)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": 7,
        "dish_name": "두부김치",
        "image_url": "https://cdn.test/full.jpg",
        "thumbnail_url": None,
        "comment": "든든해요",
        "created_at": "2026-10-01T09:00:00+00:00",
        "rating_sum": 9,
        "rating_count": 2,
        "vote_success": 3,
        "vote_fail": None,
        "download_count": 1,
        "comments": [{"count": 4}],
    }
    row.update(overrides)
    return row


def test_recipe_repository_lists_page_with_search_and_sort() -> None:
    client = FakeSupabaseClient()
    table = client.table("recipes")
    table.queue("select", [_row(), _row(id=8, dish_name=None, comment="")])
    repository = SupabaseRecipeRepository(client)

    recipes = repository.list_recipes(" 김치 ", "rating", offset=8, limit=8)

    assert "full_json" not in (table.last_columns or "")
    assert "comments(count)" in (table.last_columns or "")
    assert ("dish_name", "%김치%") in table.last_filters
    assert table.orders == [("rating_sum", True)]
    assert table.last_range == (8, 15)
    first, second = recipes
    assert first.thumbnail_url == "https://cdn.test/full.jpg"
    assert first.metrics.comment_count == 4
    assert first.metrics.average_rating == 4.5
    assert first.metrics.vote_fail == 0
    assert first.created_at is not None
    assert second.dish_name == "이름 없는 레시피"
    assert second.comment == "설명이 없습니다."


@pytest.mark.parametrize("sort", ["latest", "comments"])
def test_recipe_repository_orders_newest_first(sort: str) -> None:
    client = FakeSupabaseClient()
    table = client.table("recipes")
    repository = SupabaseRecipeRepository(client)

    assert repository.list_recipes("", sort, offset=0, limit=8) == []
    assert table.orders == [("created_at", True), ("id", True)]
    assert table.last_filters == []
    assert table.last_range == (0, 7)


def test_recipe_repository_create_and_get_full_recipe() -> None:
    client = FakeSupabaseClient()
    table = client.table("recipes")
    full_json = {
        "dishName": "두부김치",
        "comment": "든든해요",
        "ingredientsList": "<ul><li>두부</li></ul>",
        "easyRecipe": "<ol><li>굽기</li></ol>",
        "gourmetRecipe": "<ol><li>잘 굽기</li></ol>",
        "similarRecipes": [{"title": "김치찌개", "reason": "같은 재료"}],
        "referenceLinks": [],
        "imageUrl": None,
        "thumbnailUrl": None,
    }
    table.queue("insert", [_row(full_json=full_json, comments=None)])
    table.queue("select", [_row(full_json=full_json, thumbnail_url="https://t.jpg")])
    repository = SupabaseRecipeRepository(client)

    created = repository.create_recipe({"dish_name": "두부김치", "full_json": full_json})
    fetched = repository.get_recipe(7)

    assert created.id == 7
    assert created.easy_recipe == "<ol><li>굽기</li></ol>"
    assert created.image_url == "https://cdn.test/full.jpg"
    assert created.metrics.comment_count == 0
    assert fetched is not None
    assert fetched.similar_recipes[0].title == "김치찌개"
    assert fetched.thumbnail_url == "https://t.jpg"
    assert ("id", 7) in table.last_filters


def test_recipe_repository_get_missing_returns_none() -> None:
    repository = SupabaseRecipeRepository(FakeSupabaseClient())

    assert repository.get_recipe(1) is None
    assert repository.get_counters(1, ["rating_sum"]) is None


def test_recipe_repository_counters() -> None:
    client = FakeSupabaseClient()
    table = client.table("recipes")
    table.queue("select", [{"rating_sum": 4, "rating_count": None}])
    repository = SupabaseRecipeRepository(client)

    counters = repository.get_counters(7, ["rating_sum", "rating_count"])
    repository.update_counters(7, {"rating_sum": 9, "rating_count": 1})

    assert counters == {"rating_sum": 4, "rating_count": 0}
    assert table.last_columns == "rating_sum, rating_count"
    assert table.last_payload == {"rating_sum": 9, "rating_count": 1}


def test_comment_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    table = client.table("comments")
    row = {
        "id": 1,
        "recipe_id": 7,
        "user_id": "user-1",
        "user_email": "cook@example.com",
        "content": "맛있어요",
        "created_at": "2026-10-01T09:00:00+00:00",
    }
    table.queue("insert", [row])
    table.queue("select", [row])
    repository = SupabaseCommentRepository(client)

    created = repository.create_comment(7, "user-1", "cook@example.com", "맛있어요")
    listed = repository.list_comments(7)

    assert created.content == "맛있어요"
    assert listed == [created]
    assert table.orders == [("created_at", True)]


def test_image_storage_uploads_without_overwrite() -> None:
    client = FakeSupabaseClient()
    storage = SupabaseImageStorage(client, bucket="recipe-images")

    url = storage.upload("full_1_abc.jpg", b"jpeg", "image/jpeg")

    path, data, options = client.storage.buckets["recipe-images"].uploads[0]
    assert path == "full_1_abc.jpg"
    assert data == b"jpeg"
    assert options == {"content-type": "image/jpeg", "upsert": "false"}
    assert url.endswith("/recipe-images/full_1_abc.jpg")


def test_auth_provider_flow() -> None:
    client = FakeSupabaseClient()
    provider = SupabaseAuthProvider(client)

    url = provider.sign_in_url("http://localhost:3000/auth/callback")
    session = provider.exchange_code("good")
    user = provider.get_user("jwt-1")
    provider.sign_out("jwt-1")

    assert url == "https://auth.test/authorize"
    assert client.auth.last_oauth == {
        "provider": "google",
        "options": {
            "redirect_to": "http://localhost:3000/auth/callback",
            "query_params": {"access_type": "offline", "prompt": "consent"},
        },
    }
    assert session.access_token == "jwt-1"
    assert session.user.email == "cook@example.com"
    assert user is not None
    assert user.email is None
    assert provider.get_user("other") is None
    assert client.auth.admin.signed_out == ["jwt-1"]
    with pytest.raises(RuntimeError):
        provider.exchange_code("bad")
