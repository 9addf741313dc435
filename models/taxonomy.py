"""Canonical taxonomy definitions for wardrobe items.

This module is the single source of truth for the closed vocabularies used by
the repository, the confidence validator prompt and the outfit curator's
category matching rules.
"""

from enum import Enum
from typing import FrozenSet, Iterable, List, Tuple, Type, TypeVar

E = TypeVar("E", bound=Enum)


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_")


class Category(str, Enum):
    SHIRT = "shirt"
    T_SHIRT = "t_shirt"
    PANTS = "pants"
    SHORTS = "shorts"
    DRESS = "dress"
    SKIRT = "skirt"
    SHOES = "shoes"
    JACKET = "jacket"
    KURTA = "kurta"
    SAREE = "saree"
    LEHENGA = "lehenga"
    SHERWANI = "sherwani"
    JUMPSUIT = "jumpsuit"
    ROMPER = "romper"
    FULL_SUIT = "full_suit"
    FORMAL_SUIT = "formal_suit"
    ACCESSORY = "accessory"
    OTHER = "other"


class Style(str, Enum):
    FORMAL = "formal"
    SEMI_FORMAL = "semi-formal"
    CASUAL = "casual"
    SPORTY = "sporty"
    TRADITIONAL = "traditional"


class Season(str, Enum):
    SUMMER = "summer"
    WINTER = "winter"
    SPRING = "spring"
    FALL = "fall"
    ANY = "any"


class ItemStatus(str, Enum):
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


TRADITIONAL_CATEGORIES: FrozenSet[Category] = frozenset(
    {Category.KURTA, Category.SAREE, Category.LEHENGA, Category.SHERWANI}
)

COMPLETE_OUTFIT_CATEGORIES: FrozenSet[Category] = frozenset(
    {
        Category.DRESS,
        Category.KURTA,
        Category.SAREE,
        Category.LEHENGA,
        Category.SHERWANI,
        Category.JUMPSUIT,
        Category.ROMPER,
        Category.FULL_SUIT,
        Category.FORMAL_SUIT,
    }
)

# Slot order for composite outfits.
REQUIRED_SLOTS: Tuple[str, ...] = ("shirt", "pants", "shoes")

TRADITIONAL_KEYWORDS: Tuple[str, ...] = (
    "traditional",
    "indian",
    "ethnic",
    "kurta",
    "saree",
    "lehenga",
    "sherwani",
)


def _parse(enum_cls: Type[E], value: object, label: str) -> E:
    if isinstance(value, enum_cls):
        return value
    raw = str(value or "")
    key = _normalize_key(raw)
    for member in enum_cls:
        if member.value in {key, key.replace("_", "-"), key.replace("-", "_")}:
            return member
    allowed = [member.value for member in enum_cls]
    raise ValueError(f"Unsupported {label} '{raw}'. Allowed: {allowed}")


def validate_category(value: object) -> Category:
    """Validate and normalise a category value.

    Raises a :class:`ValueError` if the category is not part of the canonical
    taxonomy.
    """

    return _parse(Category, value, "category")


def validate_style(value: object) -> Style:
    return _parse(Style, value, "style")


def validate_season(value: object) -> Season:
    return _parse(Season, value, "season")


def validate_status(value: object) -> ItemStatus:
    return _parse(ItemStatus, value, "status")


def normalise_labels(values: Iterable[object]) -> List[str]:
    """Strip and deduplicate free-text colors or tags, keeping first-seen order."""

    normalised: List[str] = []
    seen = set()
    for value in values:
        label = str(value).strip()
        if label and label not in seen:
            normalised.append(label)
            seen.add(label)
    return normalised


def category_names() -> List[str]:
    return [member.value for member in Category]


__all__ = [
    "Category",
    "Style",
    "Season",
    "ItemStatus",
    "TRADITIONAL_CATEGORIES",
    "COMPLETE_OUTFIT_CATEGORIES",
    "REQUIRED_SLOTS",
    "TRADITIONAL_KEYWORDS",
    "validate_category",
    "validate_style",
    "validate_season",
    "validate_status",
    "normalise_labels",
    "category_names",
]
