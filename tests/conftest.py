"""Shared fixtures: temporary stores and in-process fake adapters."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from curator_app.errors import EmbeddingUnavailable
from models.taxonomy import ItemStatus
from models.wardrobe_item import EMBEDDING_DIMENSION, WardrobeItem
from tools.binary_store import LocalBinaryStore
from tools.embeddings import EmbeddingAdapter
from tools.judgment_oracle import JudgmentOracle
from tools.wardrobe_store import SQLiteWardrobeStore


def axis_vector(index: int = 0, length: float = 1.0) -> List[float]:
    """A 512-d vector pointing along one axis."""

    vector = [0.0] * EMBEDDING_DIMENSION
    vector[index] = length
    return vector


class FakeEmbedder(EmbeddingAdapter):
    """Returns canned vectors and descriptions; records every call."""

    def __init__(
        self,
        text_vectors: Optional[Dict[str, List[float]]] = None,
        default_vector: Optional[List[float]] = None,
        description: str = "navy cotton shirt with a button-down collar",
        fail_embedding: bool = False,
        fail_description: bool = False,
    ) -> None:
        self.text_vectors = text_vectors or {}
        self.default_vector = default_vector if default_vector is not None else axis_vector(0)
        self.description = description
        self.fail_embedding = fail_embedding
        self.fail_description = fail_description
        self.calls: List[str] = []

    def embed_text(self, text: str) -> List[float]:
        self.calls.append(f"embed_text:{text}")
        if self.fail_embedding:
            raise EmbeddingUnavailable("embedding backend down")
        return list(self.text_vectors.get(text, self.default_vector))

    def embed_image(self, data: bytes, mime_type: str) -> List[float]:
        self.calls.append("embed_image")
        if self.fail_embedding:
            raise EmbeddingUnavailable("embedding backend down")
        return axis_vector(1)

    def describe_image(self, data: bytes, mime_type: str) -> str:
        self.calls.append("describe_image")
        if self.fail_description:
            raise EmbeddingUnavailable("vision backend down")
        return self.description


class FakeOracle(JudgmentOracle):
    """Replies with a fixed string, or raises the given exception."""

    def __init__(self, reply: str = "", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    def judge(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def store(tmp_path: Path) -> SQLiteWardrobeStore:
    return SQLiteWardrobeStore(tmp_path / "wardrobe.db")


@pytest.fixture
def binary_store(tmp_path: Path) -> LocalBinaryStore:
    return LocalBinaryStore(tmp_path / "uploads", public_base_url="/uploads")


@pytest.fixture
def add_item(store: SQLiteWardrobeStore) -> Callable[..., WardrobeItem]:
    """Insert a ready item; keyword arguments override the defaults."""

    def _add(
        category: str = "shirt",
        embedding: Optional[List[float]] = None,
        status: ItemStatus = ItemStatus.READY,
        **overrides: object,
    ) -> WardrobeItem:
        fields: Dict[str, object] = {
            "image_url": f"/uploads/{category}.jpg",
            "category": category,
            "style": "casual",
            "season": "any",
            "description": f"plain {category}",
            "status": status,
            "embedding": embedding if embedding is not None else (axis_vector(0) if status == ItemStatus.READY else None),
        }
        fields.update(overrides)
        return store.insert(WardrobeItem(**fields))

    return _add
