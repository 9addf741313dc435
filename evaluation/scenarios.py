"""Evaluation scenarios covering the outfit curation rules end to end."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class EvaluationScenario:
    name: str
    description: str
    query: str
    wardrobe_items: List[Dict[str, object]]
    expectations: Dict[str, object] = field(default_factory=dict)


def _item(category: str, style: str, season: str, description: str, colors: List[str], tags: List[str]) -> Dict[str, object]:
    return {
        "image_url": f"/uploads/eval-{category}.jpg",
        "category": category,
        "style": style,
        "season": season,
        "description": description,
        "colors": colors,
        "tags": tags,
    }


def _separates() -> List[Dict[str, object]]:
    return [
        _item("shirt", "casual", "summer", "white linen shirt with short sleeves", ["white"], ["linen"]),
        _item("pants", "casual", "any", "blue denim pants with a straight cut", ["blue"], ["denim"]),
        _item("shoes", "casual", "any", "white canvas sneakers", ["white"], ["sneakers"]),
        _item("jacket", "casual", "fall", "olive utility jacket", ["olive"], ["layer"]),
    ]


SCENARIOS: List[EvaluationScenario] = [
    EvaluationScenario(
        name="weekend_separates",
        description="Only separates are stored, so the curator assembles shirt, pants and shoes.",
        query="relaxed weekend look",
        wardrobe_items=_separates(),
        expectations={"is_complete": True, "categories": ["shirt", "pants", "shoes"]},
    ),
    EvaluationScenario(
        name="summer_dress",
        description="A dress that matches the request closely is a complete outfit on its own.",
        query="red floral summer dress",
        wardrobe_items=[
            _item("dress", "casual", "summer", "red floral summer dress", ["red"], ["floral"]),
            *_separates(),
        ],
        expectations={"is_complete": True, "categories": ["dress"]},
    ),
    EvaluationScenario(
        name="festive_kurta",
        description="Traditional intent selects the best traditional garment.",
        query="traditional kurta for a wedding",
        wardrobe_items=[
            *_separates(),
            _item("kurta", "traditional", "any", "traditional kurta for a wedding", ["gold"], ["festive"]),
        ],
        expectations={"is_complete": True, "categories": ["kurta"]},
    ),
    EvaluationScenario(
        name="missing_bottoms",
        description="Without pants the curator returns a partial outfit naming the gap.",
        query="smart casual dinner",
        wardrobe_items=[
            _item("shirt", "semi-formal", "any", "light blue oxford shirt", ["blue"], ["oxford"]),
            _item("shoes", "formal", "any", "brown leather loafers", ["brown"], ["leather"]),
        ],
        expectations={"is_complete": False, "categories": ["shirt", "shoes"], "message_mentions": "pants"},
    ),
]
