"""Embedding adapter tests; the hosted SDK calls are monkeypatched."""

from __future__ import annotations

import math
import os
from types import SimpleNamespace

import pytest

from curator_app.config import CuratorConfig
from curator_app.errors import EmbeddingUnavailable
from tools import embeddings
from tools.embeddings import (
    GeminiEmbeddingAdapter,
    HashingEmbeddingAdapter,
    build_embedding_adapter,
    fit_dimension,
)


def test_fit_dimension_pads_truncates_and_cleans() -> None:
    assert fit_dimension([1, 2], 4) == [1.0, 2.0, 0.0, 0.0]
    assert fit_dimension(range(10), 3) == [0.0, 1.0, 2.0]
    assert fit_dimension([float("nan"), "x", 3], 3) == [0.0, 0.0, 3.0]


def test_hashing_adapter_is_deterministic_and_normalised() -> None:
    adapter = HashingEmbeddingAdapter()

    first = adapter.embed_text("Navy linen shirt")
    second = adapter.embed_text("navy  LINEN shirt!")

    assert len(first) == 512
    assert first == second
    assert math.sqrt(sum(value * value for value in first)) == pytest.approx(1.0)
    assert adapter.embed_image(b"\x89PNG", "image/png") == adapter.embed_image(b"\x89PNG", "image/png")


def test_hashing_adapter_rejects_empty_input_and_cannot_describe() -> None:
    adapter = HashingEmbeddingAdapter()

    with pytest.raises(EmbeddingUnavailable):
        adapter.embed_text("   ")
    with pytest.raises(EmbeddingUnavailable):
        adapter.embed_text("!!!")
    with pytest.raises(EmbeddingUnavailable):
        adapter.describe_image(b"data", "image/png")


def test_build_embedding_adapter_follows_backend() -> None:
    assert isinstance(build_embedding_adapter(CuratorConfig(embedding_backend="hashing")), HashingEmbeddingAdapter)
    assert isinstance(build_embedding_adapter(CuratorConfig(google_api_key="k")), GeminiEmbeddingAdapter)


@pytest.fixture
def gemini(monkeypatch):
    monkeypatch.setattr(embeddings.genai, "configure", lambda **_: None)
    return GeminiEmbeddingAdapter(
        api_key="test-key",
        embedding_model="models/text-embedding-004",
        vision_model="models/gemini-1.5-flash-002",
        timeout_seconds=10,
    )


def test_gemini_embed_text_fits_vector(monkeypatch, gemini) -> None:
    calls = []

    def fake_embed_content(model, content, request_options):
        calls.append((model, content, request_options))
        return {"embedding": [0.5] * 768}

    monkeypatch.setattr(embeddings.genai, "embed_content", fake_embed_content)

    vector = gemini.embed_text("black leather boots")

    assert len(vector) == 512
    assert calls == [("models/text-embedding-004", "black leather boots", {"timeout": 10})]


def test_gemini_failures_surface_as_embedding_unavailable(monkeypatch, gemini) -> None:
    def broken(**_):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(embeddings.genai, "embed_content", broken)
    with pytest.raises(EmbeddingUnavailable):
        gemini.embed_text("black leather boots")

    monkeypatch.setattr(embeddings.genai, "embed_content", lambda **_: {"embedding": []})
    with pytest.raises(EmbeddingUnavailable):
        gemini.embed_text("black leather boots")


def test_gemini_describe_image_cleans_up_temp_and_remote_files(monkeypatch, gemini) -> None:
    seen = {}

    def fake_upload(path, mime_type):
        seen["path"] = path
        seen["existed"] = os.path.exists(path)
        return SimpleNamespace(name="files/abc")

    class FakeModel:
        def __init__(self, name, system_instruction=None):
            self.name = name

        def generate_content(self, parts, request_options=None):
            return SimpleNamespace(text="  Red cotton kurta with gold embroidery. ")

    monkeypatch.setattr(embeddings.genai, "upload_file", fake_upload)
    monkeypatch.setattr(embeddings.genai, "delete_file", lambda name: seen.setdefault("deleted", name))
    monkeypatch.setattr(embeddings.genai, "GenerativeModel", FakeModel)

    description = gemini.describe_image(b"jpeg-bytes", "image/jpeg")

    assert description == "Red cotton kurta with gold embroidery."
    assert seen["existed"] is True
    assert not os.path.exists(seen["path"])
    assert seen["deleted"] == "files/abc"


def test_gemini_describe_image_reports_empty_description(monkeypatch, gemini) -> None:
    class SilentModel:
        def __init__(self, *_, **__):
            pass

        def generate_content(self, *_, **__):
            return SimpleNamespace(text="")

    monkeypatch.setattr(embeddings.genai, "upload_file", lambda path, mime_type: SimpleNamespace(name="files/x"))
    monkeypatch.setattr(embeddings.genai, "delete_file", lambda name: None)
    monkeypatch.setattr(embeddings.genai, "GenerativeModel", SilentModel)

    with pytest.raises(EmbeddingUnavailable):
        gemini.describe_image(b"jpeg-bytes", "image/jpeg")
