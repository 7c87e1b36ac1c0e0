"""Application-owned navigation stack mirrored into the browser URL."""

from dataclasses import dataclass, field
from urllib.parse import parse_qs

from recipe_wizard.domain.navigation import TABS, NavEntry, Step


@dataclass
class NavigationStack:
    """Stack of (step, tab) records; the browser history only mirrors it."""

    entries: list[NavEntry] = field(default_factory=lambda: [NavEntry(Step.WELCOME)])
    max_entries: int = 50

    @property
    def current(self) -> NavEntry:
        return self.entries[-1]

    def push(self, entry: NavEntry) -> None:
        """Record a new view state; repeats and loading screens are skipped."""
        if entry.step is Step.LOADING or entry == self.current:
            return
        self.entries.append(entry)
        if len(self.entries) > self.max_entries:
            del self.entries[: len(self.entries) - self.max_entries]

    def pop(self) -> NavEntry | None:
        """Drop the current record and return the one below it."""
        if len(self.entries) <= 1:
            return None
        self.entries.pop()
        return self.current

    def rewind_to(self, entry: NavEntry) -> None:
        """Truncate to the newest matching record, or push it when absent."""
        for position in range(len(self.entries) - 1, -1, -1):
            if self.entries[position] == entry:
                del self.entries[position + 1 :]
                return
        self.push(entry)


def to_query(entry: NavEntry) -> str:
    """Render a record as the address bar query string."""
    return f"?tab={entry.tab}&step={int(entry.step)}"


def parse_query(query: str) -> NavEntry:
    """Parse ?tab=<tab>&step=<n>, falling back to the welcome screen."""
    params = parse_qs(query.lstrip("?"))
    tab = params.get("tab", ["home"])[0]
    if tab not in TABS:
        tab = "home"
    raw_step = params.get("step", ["0"])[0]
    try:
        step = Step(int(raw_step))
    except ValueError:
        step = Step.WELCOME
    if step is Step.LOADING:
        step = Step.WELCOME
    return NavEntry(step=step, tab=tab)
