"""Deterministic outfit curation over ranked candidates.

Rules are evaluated in order and the first match wins:

1. no candidates -> empty outfit
2. traditional intent in the query and a traditional garment scoring >= 0.5
3. any complete-outfit garment scoring >= 0.6 (first in rank order)
4. a shirt + pants + shoes composite
5. a partial composite naming the missing slots
6. nothing usable -> empty outfit
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from models.outfit import CuratedOutfit, RankedCandidate
from models.taxonomy import (
    COMPLETE_OUTFIT_CATEGORIES,
    REQUIRED_SLOTS,
    TRADITIONAL_CATEGORIES,
    TRADITIONAL_KEYWORDS,
)

logger = logging.getLogger(__name__)

TRADITIONAL_MIN_SCORE = 0.5
COMPLETE_OUTFIT_MIN_SCORE = 0.6


def _label(candidate: RankedCandidate) -> str:
    return candidate.item.category.value.replace("_", " ")


def _join(names: Sequence[str]) -> str:
    if len(names) <= 1:
        return "".join(names)
    return f"{', '.join(names[:-1])} and {names[-1]}"


def _apology(query: str) -> str:
    return (
        f'Sorry, I couldn\'t put together an outfit for "{query}" from your wardrobe. '
        "Try uploading more items or rephrasing your request."
    )


def has_traditional_intent(query: str) -> bool:
    lowered = (query or "").lower()
    return any(keyword in lowered for keyword in TRADITIONAL_KEYWORDS)


def _best(candidates: Sequence[RankedCandidate]) -> Optional[RankedCandidate]:
    """Highest score; ties keep the earlier (higher-ranked) candidate."""

    best: Optional[RankedCandidate] = None
    for candidate in candidates:
        if best is None or candidate.score > best.score:
            best = candidate
    return best


def _pick_traditional(candidates: Sequence[RankedCandidate], query: str) -> Optional[RankedCandidate]:
    if not has_traditional_intent(query):
        return None
    best = _best([c for c in candidates if c.item.category in TRADITIONAL_CATEGORIES])
    if best is not None and best.score >= TRADITIONAL_MIN_SCORE:
        return best
    return None


def _pick_complete_outfit(candidates: Sequence[RankedCandidate]) -> Optional[RankedCandidate]:
    for candidate in candidates:
        if candidate.item.category in COMPLETE_OUTFIT_CATEGORIES and candidate.score >= COMPLETE_OUTFIT_MIN_SCORE:
            return candidate
    return None


def _fill_slots(candidates: Sequence[RankedCandidate]) -> tuple[List[RankedCandidate], List[str]]:
    remaining = list(candidates)
    chosen: List[RankedCandidate] = []
    missing: List[str] = []
    for slot in REQUIRED_SLOTS:
        best = _best([c for c in remaining if slot in c.item.category.value.lower()])
        if best is None:
            missing.append(slot)
            continue
        chosen.append(best)
        remaining = [c for c in remaining if c is not best]
    return chosen, missing


def curate_outfit(candidates: Sequence[RankedCandidate], query: str) -> CuratedOutfit:
    """Select a minimal valid outfit from ranked candidates."""

    if not candidates:
        logger.info("No candidates to curate")
        return CuratedOutfit(items=[], is_complete=False, message=_apology(query))

    traditional = _pick_traditional(candidates, query)
    if traditional is not None:
        logger.info("Selected traditional single-item outfit (%s)", traditional.item.category.value)
        return CuratedOutfit(
            items=[traditional],
            is_complete=True,
            message=f'For "{query}", this {_label(traditional)} is a complete traditional look on its own.',
        )

    complete = _pick_complete_outfit(candidates)
    if complete is not None:
        logger.info("Selected complete single-item outfit (%s)", complete.item.category.value)
        return CuratedOutfit(
            items=[complete],
            is_complete=True,
            message=f'This {_label(complete)} is a complete outfit for "{query}".',
        )

    chosen, missing = _fill_slots(candidates)
    logger.info("Composite outfit filled %s slot(s); missing %s", len(chosen), missing)
    if not chosen:
        return CuratedOutfit(items=[], is_complete=False, message=_apology(query))
    if not missing:
        return CuratedOutfit(
            items=chosen,
            is_complete=True,
            message=f'Here is a complete outfit for "{query}": {_join([_label(c) for c in chosen])}.',
        )
    return CuratedOutfit(
        items=chosen,
        is_complete=False,
        message=(
            f'I found part of an outfit for "{query}": {_join([_label(c) for c in chosen])}. '
            f"Still missing: {_join(missing)}."
        ),
    )


__all__ = ["curate_outfit", "has_traditional_intent"]
