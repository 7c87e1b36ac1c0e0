"""Request dependencies shared by the API routers."""

from fastapi import Header, HTTPException, Request, status

from recipe_wizard.containers import AppContainer
from recipe_wizard.services.states import AppState


async def get_client_state(
    request: Request, x_client_id: str | None = Header(default=None)
) -> AppState:
    """Resolve the application state of the calling browser client."""
    client_id = (x_client_id or "").strip()
    if not client_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Client-Id header is required",
        )
    container: AppContainer = request.app.state.container
    return container.state_store.get_or_create(client_id)

async def get_access_token(
    authorization: str | None = Header(default=None),
) -> str | None:
    """Extract a bearer token, if the client sent one."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
