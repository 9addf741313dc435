"""Candidate ranker turning a free-text query into scored wardrobe matches."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from curator_app.errors import (
    EmbeddingUnavailable,
    ErrorKind,
    InvalidRequest,
    ServiceUnavailable,
    StageResult,
    StorageFault,
)
from curator_app.logging_config import get_logger, log_event, operation_context
from models.outfit import RankedCandidate
from tools.embeddings import EmbeddingAdapter
from tools.wardrobe_store import WardrobeStore

logger = get_logger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 50
DEFAULT_LIMIT = 10


class RankMode(str, Enum):
    VECTOR = "vector"
    KEYWORD = "keyword"
    UNAVAILABLE = "unavailable"


def next_mode_after(current: RankMode, error: ErrorKind) -> RankMode:
    """Fallback policy: which mode to try after ``current`` failed with ``error``.

    Vector mode degrades to keyword search whatever went wrong; a failing
    keyword search has nothing left to fall back to.
    """

    if current == RankMode.VECTOR and error in {
        ErrorKind.EMBEDDING_UNAVAILABLE,
        ErrorKind.EMPTY_RESULT,
        ErrorKind.STORAGE_FAULT,
    }:
        return RankMode.KEYWORD
    return RankMode.UNAVAILABLE


class CandidateRanker:
    """Ranks wardrobe items for a query by vector similarity, or by keyword on failure."""

    def __init__(self, store: WardrobeStore, embedder: EmbeddingAdapter) -> None:
        self.store = store
        self.embedder = embedder

    def _embed_query(self, query: str) -> StageResult[List[float]]:
        try:
            vector = self.embedder.embed_text(query)
        except EmbeddingUnavailable as exc:
            return StageResult.failure(ErrorKind.EMBEDDING_UNAVAILABLE, str(exc))
        if not vector:
            return StageResult.failure(ErrorKind.EMPTY_RESULT, "embedding was empty")
        return StageResult.success(list(vector))

    def _vector_candidates(
        self, vector: List[float], owner_id: Optional[str], limit: int
    ) -> StageResult[List[RankedCandidate]]:
        try:
            rows = self.store.query_by_similarity(vector, owner_id=owner_id, limit=limit)
        except StorageFault as exc:
            return StageResult.failure(ErrorKind.STORAGE_FAULT, type(exc).__name__)
        return StageResult.success([RankedCandidate.from_distance(item, distance) for item, distance in rows])

    def _keyword_candidates(
        self, query: str, owner_id: Optional[str], limit: int
    ) -> StageResult[List[RankedCandidate]]:
        try:
            items = self.store.query_by_keyword(query, owner_id=owner_id, limit=limit)
        except StorageFault as exc:
            return StageResult.failure(ErrorKind.STORAGE_FAULT, type(exc).__name__)
        return StageResult.success(
            [RankedCandidate.from_keyword_rank(item, rank) for rank, item in enumerate(items)]
        )

    def rank(self, query: str, owner_id: Optional[str] = None, limit: int = DEFAULT_LIMIT) -> List[RankedCandidate]:
        """Return up to ``limit`` candidates, best first.

        Args:
            query: The user's free-text request.
            owner_id: Restrict to this owner's items plus ownerless ones; ``None``
                searches the whole catalog.
            limit: Number of candidates to return, 1 to 50.

        Raises:
            InvalidRequest: if the query is blank or the limit is out of range.
            ServiceUnavailable: if the vector path and the keyword fallback both fail.
        """

        if not query or not query.strip():
            raise InvalidRequest("Query must not be empty", [{"loc": ["query"], "msg": "empty query"}])
        if not MIN_LIMIT <= int(limit) <= MAX_LIMIT:
            raise InvalidRequest(
                f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}",
                [{"loc": ["limit"], "msg": "out of range"}],
            )

        with operation_context("ranker.rank") as correlation_id:
            mode = RankMode.VECTOR
            result: StageResult[List[RankedCandidate]]
            embedded = self._embed_query(query)
            if embedded.ok:
                result = self._vector_candidates(embedded.value or [], owner_id, limit)
            else:
                result = StageResult.failure(embedded.error, embedded.detail)

            if not result.ok:
                log_event(
                    logger,
                    logging.WARNING,
                    "ranker_degraded",
                    from_mode=mode.value,
                    error_kind=result.error.value,
                    correlation_id=correlation_id,
                )
                mode = next_mode_after(mode, result.error)
                if mode == RankMode.KEYWORD:
                    result = self._keyword_candidates(query, owner_id, limit)
                    if not result.ok:
                        mode = next_mode_after(mode, result.error)

            if mode == RankMode.UNAVAILABLE:
                log_event(
                    logger,
                    logging.ERROR,
                    "ranker_unavailable",
                    error_kind=result.error.value if result.error else None,
                    correlation_id=correlation_id,
                )
                raise ServiceUnavailable("Ranking failed on both vector and keyword paths")

            candidates = list(result.value or [])[:limit]
            log_event(
                logger,
                logging.INFO,
                "ranker_completed",
                mode=mode.value,
                candidate_count=len(candidates),
                correlation_id=correlation_id,
            )
            return candidates


__all__ = ["CandidateRanker", "RankMode", "next_mode_after", "DEFAULT_LIMIT", "MAX_LIMIT"]
