"""Domain models for wizard navigation."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

Tab = Literal["home", "community"]

TABS: frozenset[str] = frozenset({"home", "community"})


class Step(IntEnum):
    """Screens of the ingredient-to-recipe flow, in URL order."""

    WELCOME = 0
    MODE_SELECTION = 1
    INGREDIENTS = 2
    SUGGESTIONS = 3
    SEASONAL = 4
    CONVENIENCE = 5
    PREFERENCES = 6
    ENVIRONMENT = 7
    LOADING = 8
    RESULT = 9


@dataclass(frozen=True)
class NavEntry:
    """One record of the application-owned navigation stack."""

    step: Step
    tab: Tab = "home"
