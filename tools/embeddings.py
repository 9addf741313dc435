"""Embedding adapters that turn text or images into 512-d vectors.

Vectors from every backend are padded or truncated to
:data:`EMBEDDING_DIMENSION` so that stored embeddings stay comparable. A
truncated native vector is not semantically equivalent to a natively 512-d
one; the fit only guarantees shape compatibility.
"""

from __future__ import annotations

import hashlib
import logging
import math
import os
import re
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Callable, Iterable, List, Optional, TypeVar

import google.generativeai as genai

from curator_app.config import CuratorConfig
from curator_app.errors import EmbeddingUnavailable
from curator_app.logging_config import get_logger, log_event
from logic.safety import DESCRIBE_IMAGE_INSTRUCTION
from models.wardrobe_item import EMBEDDING_DIMENSION

logger = get_logger(__name__)
T = TypeVar("T")

_MIME_SUFFIXES = {
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def fit_dimension(vector: Iterable[Any], dimension: int = EMBEDDING_DIMENSION) -> List[float]:
    """Coerce to floats, then zero-pad or truncate to exactly ``dimension``."""

    numeric: List[float] = []
    for value in vector:
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = 0.0
        numeric.append(number if math.isfinite(number) else 0.0)
    if len(numeric) < dimension:
        return numeric + [0.0] * (dimension - len(numeric))
    return numeric[:dimension]


class EmbeddingAdapter:
    """Contract for converting text and images into comparable vectors."""

    dimension: int = EMBEDDING_DIMENSION

    def embed_text(self, text: str) -> List[float]:
        raise NotImplementedError

    def embed_image(self, data: bytes, mime_type: str) -> List[float]:
        raise NotImplementedError

    def describe_image(self, data: bytes, mime_type: str) -> str:
        raise NotImplementedError


class HashingEmbeddingAdapter(EmbeddingAdapter):
    """Deterministic hashed bag-of-words embeddings for offline use.

    Vectors are L2-normalised, so distances between them fall in ``[0, 2]``.
    There is no captioning model behind this adapter, so ``describe_image``
    always reports the oracle as unavailable.
    """

    def __init__(self, dimension: int = EMBEDDING_DIMENSION) -> None:
        if dimension <= 0:
            raise ValueError("Embedding dimension must be positive")
        self.dimension = dimension

    @staticmethod
    def _tokenise(text: str) -> List[str]:
        return [token for token in re.split(r"[^a-zA-Z0-9]+", text.lower()) if token]

    def _hash_to_index(self, token: str) -> int:
        digest = hashlib.sha256(token.encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "big") % self.dimension

    def _accumulate_tokens(self, tokens: Iterable[str]) -> List[float]:
        vector = [0.0] * self.dimension
        for token in tokens:
            vector[self._hash_to_index(token)] += 1.0
        norm = math.sqrt(sum(value * value for value in vector))
        if not norm:
            raise EmbeddingUnavailable("No tokens to embed")
        return fit_dimension([value / norm for value in vector])

    def embed_text(self, text: str) -> List[float]:
        """Embed text using a hashed bag-of-words scheme."""

        if not text or not text.strip():
            raise EmbeddingUnavailable("Cannot embed empty text")
        return self._accumulate_tokens(self._tokenise(text))

    def embed_image(self, data: bytes, mime_type: str) -> List[float]:
        if not data:
            raise EmbeddingUnavailable("Cannot embed empty image")
        digest = hashlib.sha256(data).hexdigest()
        return self._accumulate_tokens(digest[i : i + 8] for i in range(0, len(digest), 8))

    def describe_image(self, data: bytes, mime_type: str) -> str:
        raise EmbeddingUnavailable("Hashing backend cannot describe images")


class GeminiEmbeddingAdapter(EmbeddingAdapter):
    """Hosted embeddings and image descriptions through google-generativeai.

    The SDK is configured and the vision model constructed once, on first use,
    under a lock; the handles live for the rest of the process. Every call runs
    on a worker thread bounded by ``timeout_seconds`` and is reported as
    :class:`EmbeddingUnavailable` when it fails or times out.
    """

    _executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="embedding")

    def __init__(
        self,
        api_key: Optional[str],
        embedding_model: str,
        vision_model: str,
        timeout_seconds: float = 20.0,
    ) -> None:
        self.api_key = api_key
        self.embedding_model = embedding_model
        self.vision_model = vision_model
        self.timeout_seconds = timeout_seconds
        self._lock = threading.Lock()
        self._configured = False
        self._vision: Optional[genai.GenerativeModel] = None

    def _ensure_configured(self) -> None:
        with self._lock:
            if not self._configured:
                genai.configure(api_key=self.api_key)
                self._configured = True

    def _vision_model(self) -> genai.GenerativeModel:
        self._ensure_configured()
        with self._lock:
            if self._vision is None:
                self._vision = genai.GenerativeModel(
                    self.vision_model, system_instruction=DESCRIBE_IMAGE_INSTRUCTION
                )
            return self._vision

    def _run(self, label: str, func: Callable[[], T]) -> T:
        future = self._executor.submit(func)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeout as exc:
            future.cancel()
            raise EmbeddingUnavailable(f"{label} timed out after {self.timeout_seconds}s") from exc
        except EmbeddingUnavailable:
            raise
        except Exception as exc:  # noqa: BLE001 - any SDK or transport fault means the oracle is unavailable
            raise EmbeddingUnavailable(f"{label} failed: {type(exc).__name__}") from exc

    def embed_text(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingUnavailable("Cannot embed empty text")

        def _call() -> List[float]:
            self._ensure_configured()
            response = genai.embed_content(
                model=self.embedding_model,
                content=text,
                request_options={"timeout": self.timeout_seconds},
            )
            vector = response.get("embedding") if isinstance(response, dict) else None
            if not vector:
                raise EmbeddingUnavailable("Embedding model returned no vector")
            return fit_dimension(vector, self.dimension)

        return self._run("embed_text", _call)

    def describe_image(self, data: bytes, mime_type: str) -> str:
        if not data:
            raise EmbeddingUnavailable("Cannot describe empty image")

        def _call() -> str:
            model = self._vision_model()
            suffix = _MIME_SUFFIXES.get((mime_type or "").lower(), ".jpg")
            handle, temp_path = tempfile.mkstemp(prefix="img-", suffix=suffix)
            uploaded = None
            try:
                with os.fdopen(handle, "wb") as temp_file:
                    temp_file.write(data)
                uploaded = genai.upload_file(temp_path, mime_type=mime_type or "image/jpeg")
                response = model.generate_content(
                    [uploaded, "Describe this clothing item."],
                    request_options={"timeout": self.timeout_seconds},
                )
                text = (response.text or "").strip()
                if not text:
                    raise EmbeddingUnavailable("Vision model returned no description")
                return text
            finally:
                _remove_quietly(temp_path)
                if uploaded is not None:
                    _delete_remote_file(uploaded)

        return self._run("describe_image", _call)

    def embed_image(self, data: bytes, mime_type: str) -> List[float]:
        """Describe the image, then embed the description.

        The hosted API exposes no image embedding endpoint, so image vectors live
        in the same space as text queries.
        """

        return self.embed_text(self.describe_image(data, mime_type))


def _remove_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        log_event(logger, logging.WARNING, "temp_file_cleanup_failed", error_type=type(exc).__name__)


def _delete_remote_file(uploaded: Any) -> None:
    try:
        genai.delete_file(uploaded.name)
    except Exception as exc:  # noqa: BLE001 - remote cleanup is best effort
        log_event(logger, logging.WARNING, "remote_file_cleanup_failed", error_type=type(exc).__name__)


def build_embedding_adapter(config: CuratorConfig) -> EmbeddingAdapter:
    """Return the adapter selected by ``config.embedding_backend``."""

    if config.embedding_backend == "hashing":
        return HashingEmbeddingAdapter()
    return GeminiEmbeddingAdapter(
        api_key=config.google_api_key,
        embedding_model=config.embedding_model,
        vision_model=config.vision_model,
        timeout_seconds=config.request_timeout_seconds,
    )


__all__ = [
    "EmbeddingAdapter",
    "HashingEmbeddingAdapter",
    "GeminiEmbeddingAdapter",
    "build_embedding_adapter",
    "fit_dimension",
]
