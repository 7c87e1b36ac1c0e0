"""Sign-in endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from recipe_wizard.api.dependencies import get_access_token, get_client_state
from recipe_wizard.api.models import AuthCallbackRequest
from recipe_wizard.api.views import state_view, user_view
from recipe_wizard.containers import AppContainer
from recipe_wizard.services.states import AppState

router = APIRouter(prefix="/auth", tags=["auth"])

_logger = logging.getLogger(__name__)


@router.post("/login")
async def login(
    request: Request, state: AppState = Depends(get_client_state)
) -> dict[str, str]:
    """Stash the recipe history and return the Google sign-in URL."""
    container: AppContainer = request.app.state.container
    url = await container.auth_service.begin_sign_in(state)
    return {"url": url}


@router.post("/callback")
async def callback(
    body: AuthCallbackRequest,
    request: Request,
    state: AppState = Depends(get_client_state),
) -> dict[str, object]:
    """Finish the OAuth flow and restore the stashed history."""
    container: AppContainer = request.app.state.container
    try:
        session = await container.auth_service.complete_sign_in(state, body.code)
    except Exception as exc:
        _logger.exception("OAuth code exchange failed")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc
    return {"accessToken": session.access_token, "state": state_view(state)}


@router.post("/logout")
async def logout(
    request: Request,
    state: AppState = Depends(get_client_state),
    access_token: str | None = Depends(get_access_token),
) -> dict[str, str]:
    container: AppContainer = request.app.state.container
    await container.auth_service.sign_out(state, access_token)
    return {"status": "ok"}


@router.get("/me")
async def me(
    request: Request,
    state: AppState = Depends(get_client_state),
    access_token: str | None = Depends(get_access_token),
) -> dict[str, object]:
    """Return the signed-in user, if any."""
    container: AppContainer = request.app.state.container
    user = await container.auth_service.resolve_user(state, access_token)
    return {"user": user_view(user) if user else None}
