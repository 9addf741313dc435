"""Service root wiring the repository, adapters and recommendation pipeline."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from agents.candidate_ranker import CandidateRanker
from agents.confidence_validator import ConfidenceValidator
from agents.wardrobe_ingestion import WardrobeIngestionAgent
from curator_app.auth import AuthContext
from curator_app.config import CuratorConfig
from curator_app.errors import InvalidRequest, Unauthorized
from curator_app.logging_config import configure_logging, get_logger, log_event, operation_context
from logic.outfit_curator import curate_outfit
from logic.validation import (
    ItemListQuery,
    RecommendRequest,
    UploadMetadata,
    recommend_response,
    validation_failure,
    wardrobe_item_view,
)
from tools.binary_store import BinaryStore, LocalBinaryStore
from tools.embeddings import EmbeddingAdapter, build_embedding_adapter
from tools.judgment_oracle import JudgmentOracle, build_judgment_oracle
from tools.wardrobe_store import ItemFilters, SQLiteWardrobeStore, WardrobeStore

LOGGER = get_logger(__name__)


class WardrobeCuratorApp:
    """Wires together storage, model adapters and the recommendation pipeline.

    Collaborators can be injected; anything left out is built from the config.
    The confidence validator only runs when ``config.confidence_validation`` is
    enabled.
    """

    def __init__(
        self,
        config: CuratorConfig | None = None,
        *,
        store: WardrobeStore | None = None,
        embedder: EmbeddingAdapter | None = None,
        oracle: JudgmentOracle | None = None,
        binary_store: BinaryStore | None = None,
    ) -> None:
        self.config = config or CuratorConfig.from_env()
        configure_logging()

        self.store = store or SQLiteWardrobeStore(self.config.wardrobe_db_path)
        self.binary_store = binary_store or LocalBinaryStore(
            self.config.upload_dir, public_base_url=self.config.public_base_url
        )
        self.embedder = embedder or build_embedding_adapter(self.config)
        self.ranker = CandidateRanker(self.store, self.embedder)

        self.validator: Optional[ConfidenceValidator] = None
        if self.config.confidence_validation:
            self.validator = ConfidenceValidator(oracle or build_judgment_oracle(self.config))

        self.ingestion = WardrobeIngestionAgent(
            store=self.store,
            binary_store=self.binary_store,
            embedder=self.embedder,
            variant=self.config.ingestion_variant,
            max_upload_bytes=self.config.max_upload_bytes,
        )

    def _require_owner(self, auth: AuthContext | None) -> Optional[str]:
        """Return the owner scope for this deployment mode, or reject the caller."""

        if not self.config.requires_auth:
            return None
        if auth is None:
            raise Unauthorized("Authentication required")
        return auth.user_id

    def recommend(self, payload: Mapping[str, Any], auth: AuthContext | None = None) -> Dict[str, Any]:
        """Rank, validate and curate an outfit for a free-text request."""

        with operation_context("app:recommend") as correlation_id:
            owner_id = self._require_owner(auth)
            try:
                request = RecommendRequest.model_validate(dict(payload))
            except ValidationError as exc:
                raise validation_failure("Invalid request", exc) from exc

            log_event(
                LOGGER,
                logging.INFO,
                "app_call_started",
                method="recommend",
                query=request.query,
                limit=request.limit,
                correlation_id=correlation_id,
            )
            candidates = self.ranker.rank(request.query, owner_id=owner_id, limit=request.limit)
            if self.validator is not None:
                candidates = self.validator.validate(request.query, candidates)
            outfit = curate_outfit(candidates, request.query)

            log_event(
                LOGGER,
                logging.INFO,
                "app_call_completed",
                method="recommend",
                item_count=len(outfit.items),
                is_complete=outfit.is_complete,
                correlation_id=correlation_id,
            )
            return recommend_response(outfit).model_dump(by_alias=True)

    def upload(
        self,
        data: bytes | None,
        content_type: str,
        metadata: str | Mapping[str, Any] | None,
        auth: AuthContext | None = None,
        filename: str | None = None,
    ) -> Dict[str, Any]:
        """Ingest an uploaded garment image with its metadata."""

        with operation_context("app:upload"):
            owner_id = self._require_owner(auth)
            parts = {"file": data, "metadata": metadata}
            missing = [name for name, value in parts.items() if value is None or value == ""]
            if missing:
                raise InvalidRequest(
                    "Missing file or metadata",
                    [{"loc": ["body", name], "msg": "field required", "type": "missing"} for name in missing],
                )
            try:
                raw = json.loads(metadata) if isinstance(metadata, str) else dict(metadata)
            except json.JSONDecodeError as exc:
                raise InvalidRequest(
                    "Invalid metadata", [{"loc": ["metadata"], "msg": "metadata is not valid JSON"}]
                ) from exc
            if not isinstance(raw, dict):
                raise InvalidRequest("Invalid metadata", [{"loc": ["metadata"], "msg": "expected an object"}])
            try:
                parsed = UploadMetadata.model_validate(raw)
            except ValidationError as exc:
                raise validation_failure("Invalid metadata", exc) from exc

            if owner_id is None:
                owner_id = parsed.user_id
            item = self.ingestion.ingest(
                data,
                content_type,
                parsed,
                owner_id=owner_id,
                filename=filename,
            )
            return {"item": wardrobe_item_view(item).model_dump(by_alias=True)}

    def list_items(self, params: Mapping[str, Any], auth: AuthContext | None = None) -> Dict[str, Any]:
        """List stored items with filters, pagination and sorting."""

        with operation_context("app:list_items"):
            owner_id = self._require_owner(auth)
            try:
                query = ItemListQuery.model_validate(dict(params))
            except ValidationError as exc:
                raise validation_failure("Invalid query parameters", exc) from exc

            filters = ItemFilters(
                user_id=owner_id or query.user_id,
                category=query.category,
                style=query.style,
                season=query.season,
                status=query.status,
                colors=query.colors,
                tags=query.tags,
                q=query.q,
            )
            items = self.store.list_by_filters(
                filters, limit=query.limit, offset=query.offset, sort=query.sort, direction=query.dir
            )
            views = [wardrobe_item_view(item).model_dump(by_alias=True) for item in items]
            return {"items": views, "count": len(views)}


__all__ = ["WardrobeCuratorApp"]
