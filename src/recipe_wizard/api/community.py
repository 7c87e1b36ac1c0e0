"""Community feed and recipe endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from recipe_wizard.api.dependencies import get_access_token, get_client_state
from recipe_wizard.api.models import (
    CommentRequest,
    CommunityQuery,
    RatingRequest,
    ScrollRequest,
    VoteRequest,
)
from recipe_wizard.api.views import (
    comment_view,
    community_view,
    recipe_view,
    state_view,
)
from recipe_wizard.containers import AppContainer
from recipe_wizard.domain.recipes import RecipeResult
from recipe_wizard.services.states import AppState

router = APIRouter(tags=["community"])

_logger = logging.getLogger(__name__)


def _require_recipe(recipe: RecipeResult | None) -> RecipeResult:
    if recipe is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return recipe


async def _settle(task: asyncio.Task[None] | None) -> None:
    """Wait for a debounced refresh unless a newer query superseded it."""
    if task is None:
        return
    try:
        await asyncio.shield(task)
    except asyncio.CancelledError:
        if not task.cancelled():
            raise


@router.get("/community")
async def open_community(
    request: Request, state: AppState = Depends(get_client_state)
) -> dict[str, object]:
    """Return the cached feed, loading the first page on first open."""
    container: AppContainer = request.app.state.container
    await container.community_service.open(state.community)
    return community_view(state.community)


@router.put("/community/query")
async def update_query(
    body: CommunityQuery,
    request: Request,
    state: AppState = Depends(get_client_state),
) -> dict[str, object]:
    """Change the search term and/or sort key of the feed."""
    container: AppContainer = request.app.state.container
    service = container.community_service
    cache = state.community
    task = None
    if body.sort is not None:
        task = service.set_sort(cache, body.sort) or task
    if body.search is not None:
        task = service.set_search(cache, body.search.strip()) or task
    await _settle(task)
    return community_view(cache)


@router.post("/community/more")
async def load_more(
    request: Request, state: AppState = Depends(get_client_state)
) -> dict[str, object]:
    """Append the next page of the feed."""
    container: AppContainer = request.app.state.container
    await container.community_service.load_more(state.community)
    return community_view(state.community)


@router.post("/community/refresh")
async def refresh(
    request: Request, state: AppState = Depends(get_client_state)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    await container.community_service.refresh(state.community)
    return community_view(state.community)


@router.post("/community/scroll")
async def save_scroll(
    body: ScrollRequest, request: Request, state: AppState = Depends(get_client_state)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    container.community_service.save_scroll(state.community, body.offset)
    return {"scrollOffset": state.community.scroll_offset}


@router.get("/recipes/{recipe_id}")
async def get_recipe(recipe_id: int, request: Request) -> dict[str, object]:
    """Return a full community recipe."""
    container: AppContainer = request.app.state.container
    recipe = _require_recipe(await container.recipe_service.get_recipe(recipe_id))
    return recipe_view(recipe)


@router.post("/recipes/{recipe_id}/select")
async def select_recipe(
    recipe_id: int, request: Request, state: AppState = Depends(get_client_state)
) -> dict[str, object]:
    """Open a community recipe as the current wizard result."""
    container: AppContainer = request.app.state.container
    _require_recipe(
        await container.wizard_service.select_community_recipe(state, recipe_id)
    )
    return state_view(state)


@router.post("/recipes/{recipe_id}/download")
async def record_download(recipe_id: int, request: Request) -> dict[str, str]:
    container: AppContainer = request.app.state.container
    await container.recipe_service.record_download(recipe_id)
    return {"status": "ok"}


@router.post("/recipes/{recipe_id}/rating")
async def rate_recipe(
    recipe_id: int,
    body: RatingRequest,
    request: Request,
    state: AppState = Depends(get_client_state),
) -> dict[str, object]:
    """Add a star rating."""
    container: AppContainer = request.app.state.container
    recipe = _require_recipe(
        await container.recipe_service.rate(recipe_id, body.score)
    )
    state.history.replace(recipe)
    return recipe_view(recipe)


@router.post("/recipes/{recipe_id}/votes")
async def vote_recipe(
    recipe_id: int,
    body: VoteRequest,
    request: Request,
    state: AppState = Depends(get_client_state),
) -> dict[str, object]:
    """Apply success/fail vote changes."""
    container: AppContainer = request.app.state.container
    recipe = _require_recipe(
        await container.recipe_service.vote(
            recipe_id, body.success_delta, body.fail_delta
        )
    )
    state.history.replace(recipe)
    return recipe_view(recipe)


@router.get("/recipes/{recipe_id}/comments")
async def list_comments(recipe_id: int, request: Request) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    comments = await container.recipe_service.list_comments(recipe_id)
    return {"comments": [comment_view(comment) for comment in comments]}


@router.post("/recipes/{recipe_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    recipe_id: int,
    body: CommentRequest,
    request: Request,
    state: AppState = Depends(get_client_state),
    access_token: str | None = Depends(get_access_token),
) -> dict[str, object]:
    """Add a comment; requires a signed-in user."""
    container: AppContainer = request.app.state.container
    user = await container.auth_service.resolve_user(state, access_token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        comment = await container.recipe_service.add_comment(
            recipe_id, user, body.content
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    _logger.info("Comment added", extra={"recipe_id": recipe_id})
    return comment_view(comment)
