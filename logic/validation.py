"""Pydantic schemas and helpers for validating service inputs and responses."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from curator_app.errors import InvalidRequest
from models.outfit import CuratedOutfit, RankedCandidate
from models.taxonomy import Category, Season, Style, validate_category, validate_season, validate_style
from models.wardrobe_item import WardrobeItem
from tools.wardrobe_store import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecommendRequest(BaseModel):
    """Body of the recommendation endpoint."""

    query: str = Field(min_length=1)
    limit: int = Field(default=10, ge=1, le=50)


class UploadMetadata(_CamelModel):
    """Metadata submitted alongside an uploaded garment image."""

    user_id: Optional[str] = None
    category: Category
    style: Style
    season: Season
    colors: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> Category:
        return validate_category(value)

    @field_validator("style", mode="before")
    @classmethod
    def _style(cls, value: Any) -> Style:
        return validate_style(value)

    @field_validator("season", mode="before")
    @classmethod
    def _season(cls, value: Any) -> Season:
        return validate_season(value)


def _split_csv(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        parts = [str(part) for part in value]
    else:
        parts = str(value).split(",")
    return [part.strip() for part in parts if part.strip()]


class ItemListQuery(_CamelModel):
    """Query parameters of the item listing endpoint."""

    limit: int = DEFAULT_LIST_LIMIT
    offset: int = 0
    sort: Literal["created_at", "updated_at"] = "created_at"
    dir: Literal["asc", "desc"] = "desc"
    category: Optional[str] = None
    style: Optional[str] = None
    season: Optional[str] = None
    status: Optional[str] = None
    user_id: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    q: Optional[str] = None

    @field_validator("limit")
    @classmethod
    def _cap_limit(cls, value: int) -> int:
        return min(max(value, 1), MAX_LIST_LIMIT)

    @field_validator("offset")
    @classmethod
    def _floor_offset(cls, value: int) -> int:
        return max(value, 0)

    @field_validator("sort", mode="before")
    @classmethod
    def _sort_column(cls, value: Any) -> str:
        return "updated_at" if str(value or "").strip().lower() == "updated_at" else "created_at"

    @field_validator("dir", mode="before")
    @classmethod
    def _sort_dir(cls, value: Any) -> str:
        return "asc" if str(value or "").strip().lower() == "asc" else "desc"

    @field_validator("colors", "tags", mode="before")
    @classmethod
    def _csv(cls, value: Any) -> List[str]:
        return _split_csv(value)


class WardrobeItemView(_CamelModel):
    """Stored item as returned by listing and upload; the embedding stays internal."""

    id: str
    user_id: Optional[str] = None
    image_url: str
    description: str
    category: str
    style: str
    season: str
    colors: List[str]
    tags: List[str]
    status: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


def wardrobe_item_view(item: WardrobeItem) -> WardrobeItemView:
    return WardrobeItemView(
        id=str(item.item_id),
        user_id=item.owner_id,
        image_url=item.image_url,
        description=item.description,
        category=item.category.value,
        style=item.style.value,
        season=item.season.value,
        colors=list(item.colors),
        tags=list(item.tags),
        status=item.status.value,
        created_at=item.created_at.isoformat() if item.created_at else None,
        updated_at=item.updated_at.isoformat() if item.updated_at else None,
    )


class OutfitItemView(_CamelModel):
    id: str
    image_url: str
    description: str
    category: str
    style: str
    season: str
    colors: List[str]
    tags: List[str]
    match_score: str


class OutfitView(_CamelModel):
    message: str
    is_complete: bool
    items: List[OutfitItemView]
    average_score: str


class RecommendResponse(BaseModel):
    outfit: OutfitView


def format_percent(fraction: float) -> str:
    return f"{fraction * 100:.1f}%"


def outfit_item_view(candidate: RankedCandidate) -> OutfitItemView:
    item = candidate.item
    return OutfitItemView(
        id=str(item.item_id),
        image_url=item.image_url,
        description=item.description,
        category=item.category.value,
        style=item.style.value,
        season=item.season.value,
        colors=list(item.colors),
        tags=list(item.tags),
        match_score=format_percent(candidate.score),
    )


def recommend_response(outfit: CuratedOutfit) -> RecommendResponse:
    return RecommendResponse(
        outfit=OutfitView(
            message=outfit.message,
            is_complete=outfit.is_complete,
            items=[outfit_item_view(candidate) for candidate in outfit.items],
            average_score=format_percent(outfit.average_score),
        )
    )


def error_details(exc: ValidationError) -> List[Dict[str, Any]]:
    """Reduce pydantic errors to JSON-safe field-level details."""

    return [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


def validation_failure(message: str, exc: ValidationError) -> InvalidRequest:
    """Translate pydantic errors into the service's invalid request error."""

    return InvalidRequest(message, error_details(exc))


__all__ = [
    "RecommendRequest",
    "UploadMetadata",
    "ItemListQuery",
    "WardrobeItemView",
    "wardrobe_item_view",
    "OutfitItemView",
    "OutfitView",
    "RecommendResponse",
    "recommend_response",
    "format_percent",
    "error_details",
    "validation_failure",
]
