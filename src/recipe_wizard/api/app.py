"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from recipe_wizard.api.auth import router as auth_router
from recipe_wizard.api.community import router as community_router
from recipe_wizard.api.dependencies import get_client_state
from recipe_wizard.api.models import (
    ChoicesUpdate,
    GenerateRequest,
    ModeRequest,
    PopStateRequest,
    TabRequest,
    ToggleRequest,
)
from recipe_wizard.api.views import state_view
from recipe_wizard.app_logging import configure_logging
from recipe_wizard.config import parse_allowed_origins
from recipe_wizard.containers import AppContainer
from recipe_wizard.services.states import AppState
from recipe_wizard.services.wizard import WizardError


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Recipe wizard API starting (%s)", container.settings.environment)
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    origins = parse_allowed_origins(container.settings.allowed_origins)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(WizardError)
    async def wizard_error_handler(request: Request, exc: WizardError) -> JSONResponse:
        logger.info("Rejected wizard transition: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    app.include_router(community_router)
    app.include_router(auth_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/state")
    async def get_state(
        state: AppState = Depends(get_client_state),
    ) -> dict[str, object]:
        """Return the full view state of the calling client."""
        return state_view(state)

    @app.post("/navigation/tab")
    async def switch_tab(
        body: TabRequest, request: Request, state: AppState = Depends(get_client_state)
    ) -> dict[str, object]:
        """Switch between the wizard and the community feed."""
        state_container: AppContainer = request.app.state.container
        state_container.wizard_service.switch_tab(state, body.tab)
        if body.tab == "community":
            await state_container.community_service.open(state.community)
        return state_view(state)

    @app.post("/navigation/popstate")
    async def popstate(
        body: PopStateRequest,
        request: Request,
        state: AppState = Depends(get_client_state),
    ) -> dict[str, object]:
        """Restore the view the browser navigated back or forward to."""
        state_container: AppContainer = request.app.state.container
        state_container.wizard_service.restore(state, body.query)
        return state_view(state)

    @app.post("/wizard/start")
    async def start(
        request: Request, state: AppState = Depends(get_client_state)
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.wizard_service.start(state)
        return state_view(state)

    @app.post("/wizard/mode")
    async def select_mode(
        body: ModeRequest,
        request: Request,
        state: AppState = Depends(get_client_state),
    ) -> dict[str, object]:
        """Choose fridge, seasonal or convenience mode."""
        state_container: AppContainer = request.app.state.container
        await state_container.wizard_service.select_mode(
            state, body.mode, body.category
        )
        return state_view(state)

    @app.post("/wizard/ingredients")
    async def submit_ingredients(
        request: Request, state: AppState = Depends(get_client_state)
    ) -> dict[str, object]:
        """Submit the fridge ingredients and fetch suggestions."""
        state_container: AppContainer = request.app.state.container
        await state_container.wizard_service.submit_ingredients(state)
        return state_view(state)

    @app.post("/wizard/more-items")
    async def load_more_items(
        request: Request, state: AppState = Depends(get_client_state)
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        await state_container.wizard_service.load_more_items(state)
        return state_view(state)

    @app.patch("/wizard/choices")
    async def update_choices(
        body: ChoicesUpdate,
        request: Request,
        state: AppState = Depends(get_client_state),
    ) -> dict[str, object]:
        """Update form fields of the wizard."""
        state_container: AppContainer = request.app.state.container
        state_container.wizard_service.update_choices(
            state, body.model_dump(exclude_none=True)
        )
        return state_view(state)

    @app.post("/wizard/choices/toggle")
    async def toggle_choice(
        body: ToggleRequest,
        request: Request,
        state: AppState = Depends(get_client_state),
    ) -> dict[str, object]:
        """Toggle one ingredient, sauce or tool."""
        state_container: AppContainer = request.app.state.container
        state_container.wizard_service.toggle(state, body.field, body.value)
        return state_view(state)

    @app.post("/wizard/next")
    async def next_step(
        request: Request, state: AppState = Depends(get_client_state)
    ) -> dict[str, object]:
        """Advance the wizard from its current step."""
        state_container: AppContainer = request.app.state.container
        await state_container.wizard_service.next(state)
        return state_view(state)

    @app.post("/wizard/back")
    async def back(
        request: Request, state: AppState = Depends(get_client_state)
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.wizard_service.back(state)
        return state_view(state)

    @app.post("/wizard/generate")
    async def generate(
        body: GenerateRequest,
        request: Request,
        state: AppState = Depends(get_client_state),
    ) -> dict[str, object]:
        """Generate a recipe from the collected choices."""
        state_container: AppContainer = request.app.state.container
        await state_container.wizard_service.generate(
            state, regenerate=body.regenerate
        )
        return state_view(state)

    @app.post("/wizard/reset")
    async def reset(
        request: Request, state: AppState = Depends(get_client_state)
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.wizard_service.reset(state)
        return state_view(state)

    @app.post("/history/back")
    async def history_back(
        request: Request, state: AppState = Depends(get_client_state)
    ) -> dict[str, object]:
        """Show the previous recipe of this session."""
        state_container: AppContainer = request.app.state.container
        state_container.wizard_service.history_back(state)
        return state_view(state)

    @app.post("/history/forward")
    async def history_forward(
        request: Request, state: AppState = Depends(get_client_state)
    ) -> dict[str, object]:
        """Show the next recipe of this session."""
        state_container: AppContainer = request.app.state.container
        state_container.wizard_service.history_forward(state)
        return state_view(state)

    return app
