"""Confidence validator that re-scores candidates against the literal query."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Dict, List, Sequence, Tuple

from curator_app.errors import ErrorKind, StageResult
from curator_app.logging_config import get_logger, log_event, operation_context
from models.outfit import RankedCandidate
from models.taxonomy import category_names
from tools.judgment_oracle import JudgmentOracle

logger = get_logger(__name__)

CONFIDENCE_THRESHOLD = 65.0
STRICT_MATCH_THRESHOLD = 70

Scores = Dict[str, Tuple[float, str]]


def _candidate_key(index: int, candidate: RankedCandidate) -> str:
    return candidate.item.item_id or f"#{index}"


def _strip_code_fence(text: str) -> str:
    if "```json" in text:
        return text.split("```json", 1)[1].split("```", 1)[0].strip()
    if "```" in text:
        return text.split("```", 1)[1].split("```", 1)[0].strip()
    return text.strip()


class ConfidenceValidator:
    """Filters candidates through an external judgment oracle.

    The oracle rates each candidate from 0 to 100. Candidates scoring at least
    :data:`CONFIDENCE_THRESHOLD` are kept and re-sorted by confidence, which
    takes precedence over the ranker's distance order. Any oracle failure,
    including an unparseable reply, returns the input list untouched.
    """

    def __init__(self, oracle: JudgmentOracle, threshold: float = CONFIDENCE_THRESHOLD) -> None:
        self.oracle = oracle
        self.threshold = threshold

    def build_prompt(self, query: str, candidates: Sequence[RankedCandidate]) -> str:
        listing = [
            {
                "id": _candidate_key(index, candidate),
                "category": candidate.item.category.value,
                "style": candidate.item.style.value,
                "season": candidate.item.season.value,
                "colors": candidate.item.colors,
                "description": candidate.item.description,
            }
            for index, candidate in enumerate(candidates)
        ]
        return (
            f'User request: "{query}"\n'
            f"Known categories: {', '.join(category_names())}\n"
            "For every wardrobe item below, rate from 0 to 100 how confidently it satisfies the "
            f"request as literally stated. Be strict: only {STRICT_MATCH_THRESHOLD} or above means a "
            "true match. Give a short reason for each.\n"
            'Reply as JSON: {"scores": [{"id": "<item id>", "confidence": <0-100>, "reason": "<short>"}]}\n'
            f"Items:\n{json.dumps(listing, ensure_ascii=False)}"
        )

    def _ask_oracle(self, prompt: str) -> StageResult[str]:
        try:
            raw = self.oracle.judge(prompt)
        except Exception as exc:  # noqa: BLE001 - timeouts, quota and transport errors all fail open
            return StageResult.failure(ErrorKind.ORACLE_FAILED, type(exc).__name__)
        if not raw or not str(raw).strip():
            return StageResult.failure(ErrorKind.ORACLE_FAILED, "empty reply")
        return StageResult.success(str(raw))

    @staticmethod
    def parse_scores(raw: str, known_keys: Sequence[str]) -> StageResult[Scores]:
        """Decode the oracle reply into ``{id: (confidence, reason)}``."""

        try:
            payload: Any = json.loads(_strip_code_fence(raw))
        except json.JSONDecodeError:
            return StageResult.failure(ErrorKind.MALFORMED_RESPONSE, "reply is not JSON")

        entries = payload.get("scores") if isinstance(payload, dict) else payload
        if not isinstance(entries, list):
            return StageResult.failure(ErrorKind.MALFORMED_RESPONSE, "missing scores list")

        wanted = set(known_keys)
        scores: Scores = {}
        for entry in entries:
            if not isinstance(entry, dict):
                return StageResult.failure(ErrorKind.MALFORMED_RESPONSE, "score entry is not an object")
            confidence = entry.get("confidence")
            if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
                return StageResult.failure(ErrorKind.MALFORMED_RESPONSE, "confidence is not numeric")
            if not 0 <= confidence <= 100:
                return StageResult.failure(ErrorKind.MALFORMED_RESPONSE, "confidence out of range")
            key = str(entry.get("id", ""))
            if key in wanted and key not in scores:
                scores[key] = (float(confidence), str(entry.get("reason") or ""))

        if not scores:
            return StageResult.failure(ErrorKind.MALFORMED_RESPONSE, "no candidate was scored")
        return StageResult.success(scores)

    def validate(self, query: str, candidates: Sequence[RankedCandidate]) -> List[RankedCandidate]:
        """Return confident candidates sorted by confidence, or the input on failure."""

        if not candidates:
            return list(candidates)

        with operation_context("validator.validate") as correlation_id:
            keys = [_candidate_key(index, candidate) for index, candidate in enumerate(candidates)]
            reply = self._ask_oracle(self.build_prompt(query, candidates))
            parsed: StageResult[Scores]
            if reply.ok:
                parsed = self.parse_scores(reply.value or "", keys)
            else:
                parsed = StageResult.failure(reply.error, reply.detail)

            if not parsed.ok:
                log_event(
                    logger,
                    logging.WARNING,
                    "validator_failed_open",
                    error_kind=parsed.error.value,
                    detail=parsed.detail,
                    candidate_count=len(candidates),
                    correlation_id=correlation_id,
                )
                return list(candidates)

            scores = parsed.value or {}
            kept: List[RankedCandidate] = []
            for key, candidate in zip(keys, candidates):
                if key not in scores:
                    continue
                confidence, reason = scores[key]
                if confidence >= self.threshold:
                    kept.append(replace(candidate, confidence=confidence, rationale=reason))
            kept.sort(key=lambda candidate: -(candidate.confidence or 0.0))

            log_event(
                logger,
                logging.INFO,
                "validator_completed",
                candidate_count=len(candidates),
                kept=len(kept),
                correlation_id=correlation_id,
            )
            return kept


__all__ = ["ConfidenceValidator", "CONFIDENCE_THRESHOLD"]
