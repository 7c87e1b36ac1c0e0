"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import ClientOptions, create_client

from recipe_wizard.adapters.openai_generation_client import OpenAIGenerationClient
from recipe_wizard.adapters.supabase_auth_provider import SupabaseAuthProvider
from recipe_wizard.adapters.supabase_comment_repository import (
    SupabaseCommentRepository,
)
from recipe_wizard.adapters.supabase_image_storage import SupabaseImageStorage
from recipe_wizard.adapters.supabase_recipe_repository import (
    SupabaseRecipeRepository,
)
from recipe_wizard.config import Settings
from recipe_wizard.services.auth import AuthService
from recipe_wizard.services.cache import InMemoryCache
from recipe_wizard.services.community import CommunityService
from recipe_wizard.services.generation import RecipeGenerationService
from recipe_wizard.services.recipes import RecipeService
from recipe_wizard.services.states import AppStateStore, CachedAppStateStore
from recipe_wizard.services.wizard import WizardService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    state_store: AppStateStore
    generation_service: RecipeGenerationService
    recipe_service: RecipeService
    wizard_service: WizardService
    community_service: CommunityService
    auth_service: AuthService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_service_key,
        options=ClientOptions(flow_type="pkce"),
    )
    recipe_repository = SupabaseRecipeRepository(supabase_client)
    comment_repository = SupabaseCommentRepository(supabase_client)
    image_storage = SupabaseImageStorage(
        supabase_client, bucket=resolved_settings.image_bucket
    )
    openai_client = OpenAIGenerationClient.create(resolved_settings.openai_api_key)
    generation_service = RecipeGenerationService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        image_model=resolved_settings.openai_image_model,
    )
    recipe_service = RecipeService(
        repository=recipe_repository,
        comment_repository=comment_repository,
        image_storage=image_storage,
        thumbnail_max_width=resolved_settings.thumbnail_max_width,
    )
    wizard_service = WizardService(
        generation_service=generation_service,
        recipe_service=recipe_service,
    )
    community_service = CommunityService(
        repository=recipe_repository,
        page_size=resolved_settings.community_page_size,
        debounce_seconds=resolved_settings.community_debounce_seconds,
    )
    cache = InMemoryCache(max_entries=resolved_settings.client_state_max_entries)
    state_store = CachedAppStateStore(
        cache, ttl_seconds=resolved_settings.client_state_ttl_seconds
    )
    auth_service = AuthService(
        provider=SupabaseAuthProvider(supabase_client),
        cache=cache,
        redirect_url=f"{resolved_settings.public_base_url.rstrip('/')}/auth/callback",
        stash_ttl_seconds=resolved_settings.history_stash_ttl_seconds,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        state_store=state_store,
        generation_service=generation_service,
        recipe_service=recipe_service,
        wizard_service=wizard_service,
        community_service=community_service,
        auth_service=auth_service,
        close_resources=close_resources,
    )
