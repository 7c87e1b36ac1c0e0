"""Domain models for wizard form state."""

from dataclasses import dataclass, field
from typing import Literal

Mode = Literal["fridge", "seasonal", "convenience"]
ConvenienceCategory = Literal["meal", "snack"]

MODES: frozenset[str] = frozenset({"fridge", "seasonal", "convenience"})

CUISINES = ("🇰🇷 한식", "🇯🇵 일식", "🇨🇳 중식", "🇮🇹 양식", "🌏 퓨전")
PARTNERS = ("👤 혼밥", "💑 부부", "👶 손주/아이", "👨‍👩‍👧 가족", "🍻 친구")
THEMES = ("🍺 안주", "💪 건강식", "🌿 다이어트", "🍚 든든한 한끼", "🍝 특별한 날")
LEVELS = ("Lv.1 요린이", "Lv.2 기본적인 건 해요", "Lv.3 주방의 고수")


@dataclass
class UserChoices:
    """Mutable form state collected across wizard steps."""

    mode: Mode = "fridge"
    ingredients: str = ""
    sauces: list[str] = field(default_factory=list)
    cuisine: str = CUISINES[0]
    partner: str = PARTNERS[0]
    theme: str = THEMES[3]
    tools: list[str] = field(default_factory=list)
    level: str = LEVELS[1]


def split_ingredients(text: str) -> list[str]:
    """Split comma separated ingredient text into trimmed names."""
    return [part.strip() for part in text.split(",") if part.strip()]


def toggle_ingredient(text: str, item: str) -> str:
    """Add or remove an ingredient name from comma separated text."""
    name = item.strip()
    names = split_ingredients(text)
    if name in names:
        names = [existing for existing in names if existing != name]
    elif name:
        names.append(name)
    return ", ".join(names)


def toggle_value(values: list[str], value: str) -> list[str]:
    """Return a copy of values with value added or removed."""
    if value in values:
        return [existing for existing in values if existing != value]
    return [*values, value]
