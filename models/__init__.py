"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.outfit import CuratedOutfit, RankedCandidate
from models.wardrobe_item import EMBEDDING_DIMENSION, WardrobeItem, from_raw_metadata

__all__ = ["WardrobeItem", "from_raw_metadata", "EMBEDDING_DIMENSION", "RankedCandidate", "CuratedOutfit"]
