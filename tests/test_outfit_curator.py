"""Outfit curator rule tests."""

from __future__ import annotations

import pytest

from logic.outfit_curator import curate_outfit, has_traditional_intent
from logic.validation import recommend_response
from models.outfit import RankedCandidate
from models.wardrobe_item import WardrobeItem


def _candidate(category: str, score: float, item_id: str | None = None) -> RankedCandidate:
    item = WardrobeItem(
        item_id=item_id or f"{category}-{score}",
        image_url=f"/uploads/{category}.jpg",
        category=category,
        style="casual",
        season="any",
    )
    return RankedCandidate(item=item, distance=0.0, score=score)


def test_empty_candidates_produce_apology_with_query() -> None:
    outfit = curate_outfit([], "anything")

    assert outfit.items == []
    assert outfit.is_complete is False
    assert "anything" in outfit.message


def test_complete_outfit_item_above_threshold_stands_alone() -> None:
    outfit = curate_outfit([_candidate("dress", 0.7)], "dress for party")

    assert [c.item.category.value for c in outfit.items] == ["dress"]
    assert outfit.is_complete is True


def test_complete_outfit_item_below_threshold_is_ignored() -> None:
    outfit = curate_outfit([_candidate("dress", 0.55), _candidate("shirt", 0.5)], "dress for party")

    assert [c.item.category.value for c in outfit.items] == ["shirt"]
    assert outfit.is_complete is False


def test_composite_outfit_in_slot_order_with_average_score() -> None:
    candidates = [_candidate("shoes", 0.6), _candidate("shirt", 0.8), _candidate("pants", 0.7)]

    outfit = curate_outfit(candidates, "office look")

    assert [c.item.category.value for c in outfit.items] == ["shirt", "pants", "shoes"]
    assert outfit.is_complete is True
    assert outfit.average_score == pytest.approx(0.7)
    assert recommend_response(outfit).outfit.average_score == "70.0%"


def test_partial_outfit_names_missing_slots() -> None:
    outfit = curate_outfit([_candidate("shirt", 0.8)], "office look")

    assert len(outfit.items) == 1
    assert outfit.is_complete is False
    assert "pants" in outfit.message
    assert "shoes" in outfit.message


def test_slot_matching_picks_highest_score_and_substrings() -> None:
    tee = _candidate("t_shirt", 0.9, "tee")
    shirt = _candidate("shirt", 0.4, "shirt")
    outfit = curate_outfit([shirt, tee, _candidate("pants", 0.5), _candidate("shoes", 0.5)], "weekend")

    assert outfit.items[0].item.item_id == "tee"


def test_traditional_intent_prefers_best_traditional_item() -> None:
    candidates = [
        _candidate("dress", 0.95),
        _candidate("kurta", 0.55, "kurta-low"),
        _candidate("sherwani", 0.6, "sherwani-high"),
    ]

    outfit = curate_outfit(candidates, "Traditional wedding outfit")

    assert [c.item.item_id for c in outfit.items] == ["sherwani-high"]
    assert outfit.is_complete is True


def test_traditional_item_below_threshold_falls_through() -> None:
    candidates = [_candidate("saree", 0.45), _candidate("dress", 0.65)]

    outfit = curate_outfit(candidates, "ethnic look")

    assert [c.item.category.value for c in outfit.items] == ["dress"]


def test_no_usable_candidates_returns_apology() -> None:
    outfit = curate_outfit([_candidate("accessory", 0.9)], "beach day")

    assert outfit.items == []
    assert outfit.is_complete is False
    assert "beach day" in outfit.message


def test_traditional_intent_detection() -> None:
    assert has_traditional_intent("Something INDIAN for diwali")
    assert has_traditional_intent("kurta please")
    assert not has_traditional_intent("business casual")
