"""State machine for the ingredient-to-recipe wizard."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from recipe_wizard.domain.choices import (
    MODES,
    ConvenienceCategory,
    Mode,
    UserChoices,
    split_ingredients,
    toggle_ingredient,
    toggle_value,
)
from recipe_wizard.domain.navigation import TABS, NavEntry, Step, Tab
from recipe_wizard.domain.recipes import RecipeResult
from recipe_wizard.domain.suggestions import Suggestions, TopicItem
from recipe_wizard.services.generation import (
    RecipeGenerationError,
    RecipeGenerationService,
)
from recipe_wizard.services.navigation import parse_query
from recipe_wizard.services.recipes import RecipeService
from recipe_wizard.services.states import AppState

_logger = logging.getLogger(__name__)

GENERATION_ERROR_MESSAGE = "문제가 발생했습니다. 다시 시도해 주세요."

_TEXT_FIELDS = frozenset({"ingredients", "cuisine", "partner", "theme", "level"})
_LIST_FIELDS = frozenset({"sauces", "tools"})

_TOPIC_STEPS = {"seasonal": Step.SEASONAL, "convenience": Step.CONVENIENCE}
_PICKER_STEPS = {
    "fridge": Step.SUGGESTIONS,
    "seasonal": Step.SEASONAL,
    "convenience": Step.CONVENIENCE,
}
_PREDECESSORS = {
    Step.MODE_SELECTION: Step.WELCOME,
    Step.INGREDIENTS: Step.MODE_SELECTION,
    Step.SEASONAL: Step.MODE_SELECTION,
    Step.CONVENIENCE: Step.MODE_SELECTION,
    Step.SUGGESTIONS: Step.INGREDIENTS,
    Step.ENVIRONMENT: Step.PREFERENCES,
    Step.RESULT: Step.WELCOME,
}


class WizardError(ValueError):
    """Raised for a transition the current step does not allow."""


@dataclass
class WizardService:
    """Drives an AppState through the wizard steps.

    Forward transitions may fetch enrichment data before advancing; those
    fetches are best effort, so the user always reaches the next step.
    Generation goes through LOADING and always leaves it, to RESULT on
    success or to WELCOME with an error message on failure.
    """

    generation_service: RecipeGenerationService
    recipe_service: RecipeService

    def start(self, state: AppState) -> None:
        """Leave the welcome screen for mode selection."""
        if state.step is not Step.WELCOME:
            raise WizardError(f"Cannot start from {state.step.name}")
        state.error = None
        self._go(state, Step.MODE_SELECTION)

    async def next(self, state: AppState) -> RecipeResult | None:  # noqa: PLR0911
        """Advance from the current step."""
        step = state.step
        if step is Step.WELCOME:
            self.start(state)
            return None
        if step is Step.MODE_SELECTION:
            await self.select_mode(state, state.choices.mode)
            return None
        if step is Step.INGREDIENTS:
            await self.submit_ingredients(state)
            return None
        if step in {Step.SUGGESTIONS, Step.SEASONAL, Step.CONVENIENCE}:
            _require_ingredients(state.choices)
            self._go(state, Step.PREFERENCES)
            return None
        if step is Step.PREFERENCES:
            self._go(state, Step.ENVIRONMENT)
            return None
        if step is Step.ENVIRONMENT:
            return await self.generate(state)
        raise WizardError(f"Cannot advance from {step.name}")

    async def select_mode(
        self,
        state: AppState,
        mode: Mode,
        category: ConvenienceCategory = "meal",
    ) -> None:
        """Start a flow for the chosen mode, fetching its picker items."""
        if mode not in MODES:
            raise WizardError(f"Unknown mode: {mode}")
        if state.step not in {Step.WELCOME, Step.MODE_SELECTION}:
            raise WizardError(f"Cannot choose a mode from {state.step.name}")
        state.choices = replace(state.choices, mode=mode, ingredients="", sauces=[])
        state.suggestions = Suggestions()
        state.topic_items = []
        state.error = None
        if mode == "fridge":
            self._go(state, Step.INGREDIENTS)
            return

        state.convenience_category = category
        state.is_fetching_items = True
        try:
            state.topic_items = await self._fetch_topics(state, excluded=[])
        finally:
            state.is_fetching_items = False
        self._go(state, _TOPIC_STEPS[mode])

    async def submit_ingredients(self, state: AppState) -> None:
        """Fetch suggestions for the entered ingredients and show them."""
        if state.step is not Step.INGREDIENTS:
            raise WizardError(f"Cannot submit ingredients from {state.step.name}")
        _require_ingredients(state.choices)
        state.is_fetching_items = True
        try:
            state.suggestions = await self.generation_service.fetch_suggestions(
                state.choices.ingredients
            )
        finally:
            state.is_fetching_items = False
        self._go(state, Step.SUGGESTIONS)

    async def load_more_items(self, state: AppState) -> int:
        """Append more seasonal or convenience items; returns how many."""
        if state.step not in {Step.SEASONAL, Step.CONVENIENCE}:
            raise WizardError(f"No item list on {state.step.name}")
        shown = [item.name for item in state.topic_items]
        state.is_fetching_items = True
        try:
            fetched = await self._fetch_topics(state, excluded=shown)
        finally:
            state.is_fetching_items = False
        fresh = [item for item in fetched if item.name not in shown]
        state.topic_items = [*state.topic_items, *fresh]
        return len(fresh)

    def update_choices(self, state: AppState, changes: dict[str, object]) -> None:
        """Apply field updates to the form state."""
        unknown = set(changes) - _TEXT_FIELDS - _LIST_FIELDS
        if unknown:
            raise WizardError(f"Unknown choice fields: {', '.join(sorted(unknown))}")
        updates: dict[str, object] = {}
        for name, value in changes.items():
            if name in _LIST_FIELDS:
                if not isinstance(value, list):
                    raise WizardError(f"{name} must be a list")
                updates[name] = list(dict.fromkeys(str(item) for item in value))
            else:
                updates[name] = str(value)
        state.choices = replace(state.choices, **updates)

    def toggle(self, state: AppState, field: str, value: str) -> None:
        """Toggle one sauce, tool or ingredient name."""
        choices = state.choices
        if field == "ingredients":
            state.choices = replace(
                choices, ingredients=toggle_ingredient(choices.ingredients, value)
            )
        elif field == "sauces":
            state.choices = replace(choices, sauces=toggle_value(choices.sauces, value))
        elif field == "tools":
            state.choices = replace(choices, tools=toggle_value(choices.tools, value))
        else:
            raise WizardError(f"Cannot toggle {field}")

    def back(self, state: AppState) -> None:
        """Go back one screen within the home tab."""
        if state.step is Step.LOADING:
            raise WizardError("Cannot go back while a recipe is generating")
        if state.step is Step.WELCOME:
            return
        previous = state.navigation.pop()
        if previous is not None and previous.tab == "home":
            state.step = previous.step
            state.tab = "home"
            return
        target = _predecessor(state)
        if target is None:
            return
        self._go(state, target)

    async def generate(
        self, state: AppState, regenerate: bool = False
    ) -> RecipeResult | None:
        """Generate, illustrate and save a recipe, then show it."""
        if state.step not in {Step.ENVIRONMENT, Step.RESULT}:
            raise WizardError(f"Cannot generate from {state.step.name}")
        _require_ingredients(state.choices)
        state.step = Step.LOADING
        state.error = None
        try:
            recipe = await self._produce(state.choices, regenerate=regenerate)
        except RecipeGenerationError as exc:
            _logger.warning("Recipe generation failed: %s", exc)
            state.error = str(exc) or GENERATION_ERROR_MESSAGE
            self._go(state, Step.WELCOME)
            return None
        except BaseException:
            # never leave the client stuck on the loading screen
            state.error = GENERATION_ERROR_MESSAGE
            self._go(state, Step.WELCOME)
            raise
        state.history.push(recipe)
        self._go(state, Step.RESULT)
        return recipe

    async def _produce(self, choices: UserChoices, regenerate: bool) -> RecipeResult:
        recipe = await self.generation_service.generate_recipe(
            choices, regenerate=regenerate
        )
        image_url = await self.generation_service.generate_dish_image(
            recipe.dish_name
        )
        if image_url:
            recipe = replace(recipe, image_url=image_url)
        return await self.recipe_service.save_recipe(recipe)

    def reset(self, state: AppState) -> None:
        """Return to the welcome screen, keeping the history."""
        if state.step is Step.LOADING:
            raise WizardError("Cannot reset while a recipe is generating")
        state.error = None
        self._go(state, Step.WELCOME)

    async def select_community_recipe(
        self, state: AppState, recipe_id: int
    ) -> RecipeResult | None:
        """Open a community recipe as the current result."""
        recipe = await self.recipe_service.get_recipe(recipe_id)
        if recipe is None:
            return None
        state.history.push(recipe)
        state.tab = "home"
        self._go(state, Step.RESULT)
        return recipe

    def history_back(self, state: AppState) -> RecipeResult | None:
        """Show the previous recipe of this session."""
        return self._show_history(state, state.history.back)

    def history_forward(self, state: AppState) -> RecipeResult | None:
        """Show the next recipe of this session."""
        return self._show_history(state, state.history.forward)

    def switch_tab(self, state: AppState, tab: Tab) -> None:
        """Switch between the wizard and the community feed."""
        if tab not in TABS:
            raise WizardError(f"Unknown tab: {tab}")
        state.tab = tab
        state.navigation.push(NavEntry(step=state.step, tab=tab))

    def restore(self, state: AppState, query: str) -> NavEntry:
        """Restore the view from a browser popstate query string."""
        entry = parse_query(query)
        step = entry.step
        if step is Step.RESULT and state.history.current is None:
            step = Step.WELCOME
        if state.step is Step.LOADING:
            return NavEntry(step=state.step, tab=state.tab)
        restored = NavEntry(step=step, tab=entry.tab)
        state.navigation.rewind_to(restored)
        state.step = restored.step
        state.tab = restored.tab
        return restored

    async def _fetch_topics(
        self, state: AppState, excluded: list[str]
    ) -> list[TopicItem]:
        if state.choices.mode == "seasonal":
            return await self.generation_service.fetch_seasonal_items(excluded)
        return await self.generation_service.fetch_convenience_topics(
            excluded, category=state.convenience_category
        )

    def _show_history(
        self, state: AppState, move: Callable[[], RecipeResult | None]
    ) -> RecipeResult | None:
        if state.step is Step.LOADING:
            raise WizardError("Cannot browse history while a recipe is generating")
        recipe = move()
        if recipe is not None:
            state.tab = "home"
            self._go(state, Step.RESULT)
        return recipe

    @staticmethod
    def _go(state: AppState, step: Step) -> None:
        state.step = step
        state.navigation.push(NavEntry(step=step, tab=state.tab))


def _require_ingredients(choices: UserChoices) -> None:
    if not split_ingredients(choices.ingredients):
        raise WizardError("Ingredients are required")


def _predecessor(state: AppState) -> Step | None:
    if state.step is Step.PREFERENCES:
        return _PICKER_STEPS[state.choices.mode]
    return _PREDECESSORS.get(state.step)
