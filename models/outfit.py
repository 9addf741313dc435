"""Ranked candidate and curated outfit schemas."""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from models.wardrobe_item import WardrobeItem

# Distance reported for keyword matches, which have no vector distance.
KEYWORD_DISTANCE = 1e9


@dataclass(frozen=True)
class RankedCandidate:
    item: WardrobeItem
    distance: float
    score: float
    confidence: Optional[float] = None
    rationale: Optional[str] = None

    @classmethod
    def from_distance(cls, item: WardrobeItem, distance: float) -> "RankedCandidate":
        """Score a vector match as ``exp(-distance)``, which lies in (0, 1]."""

        distance = max(float(distance), 0.0)
        return cls(item=item, distance=distance, score=math.exp(-distance))

    @classmethod
    def from_keyword_rank(cls, item: WardrobeItem, rank: int) -> "RankedCandidate":
        """Score a keyword match by position: ``0.5 - 0.05 * rank``.

        Left unclamped, so ranks of 10 and above score zero or below.
        """

        return cls(item=item, distance=KEYWORD_DISTANCE, score=0.5 - 0.05 * rank)


@dataclass
class CuratedOutfit:
    items: List[RankedCandidate] = field(default_factory=list)
    is_complete: bool = False
    message: str = ""

    @property
    def average_score(self) -> float:
        """Mean score of the included items; 0.0 for an empty outfit."""

        if not self.items:
            return 0.0
        return sum(candidate.score for candidate in self.items) / len(self.items)


__all__ = ["RankedCandidate", "CuratedOutfit", "KEYWORD_DISTANCE"]
