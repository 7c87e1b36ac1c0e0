"""Back/forward history of recipes generated within one session."""

from dataclasses import dataclass, field

from recipe_wizard.domain.recipes import RecipeResult


@dataclass(frozen=True)
class HistorySnapshot:
    """Copy of the history that survives a full-page auth redirect."""

    entries: tuple[RecipeResult, ...]
    index: int


@dataclass
class RecipeHistory:
    """Append-only recipe list with a movable cursor.

    Pushing while the cursor is behind the newest entry discards the entries
    after the cursor, the same way a browser drops its forward stack.
    """

    entries: list[RecipeResult] = field(default_factory=list)
    index: int = -1

    @property
    def current(self) -> RecipeResult | None:
        if 0 <= self.index < len(self.entries):
            return self.entries[self.index]
        return None

    @property
    def can_go_back(self) -> bool:
        return self.index > 0

    @property
    def can_go_forward(self) -> bool:
        return 0 <= self.index < len(self.entries) - 1

    def push(self, recipe: RecipeResult) -> None:
        """Append a recipe after the cursor and move the cursor to it."""
        del self.entries[self.index + 1 :]
        self.entries.append(recipe)
        self.index = len(self.entries) - 1

    def back(self) -> RecipeResult | None:
        """Move the cursor one entry back if possible."""
        if self.can_go_back:
            self.index -= 1
        return self.current

    def forward(self) -> RecipeResult | None:
        """Move the cursor one entry forward if possible."""
        if self.can_go_forward:
            self.index += 1
        return self.current

    def replace(self, recipe: RecipeResult) -> None:
        """Swap in a refreshed copy of every entry with the same persisted id."""
        if recipe.id is None:
            return
        self.entries = [
            recipe if entry.id == recipe.id else entry for entry in self.entries
        ]

    def snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(entries=tuple(self.entries), index=self.index)

    def restore(self, snapshot: HistorySnapshot) -> None:
        """Replace the history with a snapshot, clamping its cursor."""
        self.entries = list(snapshot.entries)
        if not self.entries:
            self.index = -1
            return
        self.index = min(max(snapshot.index, 0), len(self.entries) - 1)
