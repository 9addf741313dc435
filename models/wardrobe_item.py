"""Wardrobe item data model and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.taxonomy import (
    Category,
    ItemStatus,
    Season,
    Style,
    normalise_labels,
    validate_category,
    validate_season,
    validate_status,
    validate_style,
)

EMBEDDING_DIMENSION = 512


def _ensure_list(value: Any) -> List[Any]:
    """Coerce a scalar or iterable into a list."""

    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


@dataclass
class WardrobeItem:
    """Represents one catalogued garment and its derived description/embedding."""

    image_url: str
    category: Category
    style: Style
    season: Season
    item_id: Optional[str] = None
    owner_id: Optional[str] = None
    description: str = ""
    embedding: Optional[List[float]] = None
    colors: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    status: ItemStatus = ItemStatus.PROCESSING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.category = validate_category(self.category)
        self.style = validate_style(self.style)
        self.season = validate_season(self.season)
        self.status = validate_status(self.status)
        self.colors = normalise_labels(_ensure_list(self.colors))
        self.tags = normalise_labels(_ensure_list(self.tags))
        self.description = (self.description or "").strip()
        if self.owner_id is not None:
            self.owner_id = str(self.owner_id)
        if self.embedding is not None:
            vector = [float(value) for value in self.embedding]
            if vector and len(vector) != EMBEDDING_DIMENSION:
                raise ValueError(
                    f"Embedding must have {EMBEDDING_DIMENSION} components, got {len(vector)}"
                )
            self.embedding = vector or None

    @property
    def is_searchable(self) -> bool:
        """Only ready items with an embedding take part in similarity search."""

        return self.status == ItemStatus.READY and bool(self.embedding)


def from_raw_metadata(metadata: Dict[str, Any]) -> WardrobeItem:
    """Factory to build a :class:`WardrobeItem` from loose upload metadata."""

    required_fields = ["image_url", "category", "style", "season"]
    missing = [name for name in required_fields if not metadata.get(name)]
    if missing:
        raise ValueError(f"Missing required fields for WardrobeItem: {missing}")

    return WardrobeItem(
        item_id=str(metadata["item_id"]) if metadata.get("item_id") else None,
        owner_id=metadata.get("owner_id"),
        image_url=str(metadata["image_url"]),
        description=str(metadata.get("description") or ""),
        category=metadata["category"],
        style=metadata["style"],
        season=metadata["season"],
        colors=_ensure_list(metadata.get("colors")),
        tags=_ensure_list(metadata.get("tags")),
        status=metadata.get("status") or ItemStatus.PROCESSING,
        embedding=metadata.get("embedding"),
    )


__all__ = ["WardrobeItem", "from_raw_metadata", "EMBEDDING_DIMENSION"]
