"""Wardrobe ingestion: store the image, describe it, embed it, persist the item."""

from __future__ import annotations

import logging
from typing import List, Optional

from curator_app.errors import (
    EmbeddingUnavailable,
    InvalidRequest,
    NotFound,
    ServiceUnavailable,
    StorageFault,
)
from curator_app.logging_config import get_logger, log_event, operation_context
from logic.validation import UploadMetadata
from models.taxonomy import ItemStatus
from models.wardrobe_item import WardrobeItem
from tools.binary_store import BinaryStore
from tools.embeddings import EmbeddingAdapter
from tools.wardrobe_store import WardrobeStore

logger = get_logger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


class WardrobeIngestionAgent:
    """Turns an uploaded image into a searchable wardrobe item.

    The row is inserted as ``processing`` right after the binary is stored and
    only becomes ``ready`` once both the description and the embedding exist.
    Any later failure marks the row ``failed`` and deletes the stored binary.
    """

    def __init__(
        self,
        store: WardrobeStore,
        binary_store: BinaryStore,
        embedder: EmbeddingAdapter,
        variant: str = "description",
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        self.store = store
        self.binary_store = binary_store
        self.embedder = embedder
        self.variant = variant
        self.max_upload_bytes = max_upload_bytes

    def _check_upload(self, data: bytes, content_type: str) -> None:
        errors: List[dict] = []
        if not data:
            errors.append({"loc": ["file"], "msg": "file is empty", "type": "value_error"})
        if not (content_type or "").lower().startswith("image/"):
            errors.append({"loc": ["file"], "msg": "invalid file type", "type": "value_error"})
        if len(data) > self.max_upload_bytes:
            errors.append({"loc": ["file"], "msg": "file too large", "type": "value_error"})
        if errors:
            raise InvalidRequest("Invalid upload", errors)

    def _abandon(self, item_id: Optional[str], image_url: str, correlation_id: str) -> None:
        """Mark the row failed and retract its binary; cleanup errors are logged only."""

        if item_id:
            try:
                self.store.mark_failed(item_id)
            except StorageFault as exc:
                log_event(
                    logger,
                    logging.WARNING,
                    "ingestion_mark_failed_error",
                    item_id=item_id,
                    error_type=type(exc).__name__,
                    correlation_id=correlation_id,
                )
        try:
            self.binary_store.delete(image_url)
        except StorageFault as exc:
            log_event(
                logger,
                logging.WARNING,
                "ingestion_binary_cleanup_error",
                item_id=item_id,
                error_type=type(exc).__name__,
                correlation_id=correlation_id,
            )
        log_event(
            logger,
            logging.WARNING,
            "ingestion_compensated",
            item_id=item_id,
            correlation_id=correlation_id,
        )

    def ingest(
        self,
        data: bytes,
        content_type: str,
        metadata: UploadMetadata,
        owner_id: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> WardrobeItem:
        """Run the upload pipeline and return the ``ready`` item."""

        self._check_upload(data, content_type)

        with operation_context("agent:wardrobe_ingestion.ingest") as correlation_id:
            image_url = self.binary_store.save(data, content_type, filename)

            try:
                item = self.store.insert(
                    WardrobeItem(
                        owner_id=owner_id,
                        image_url=image_url,
                        category=metadata.category,
                        style=metadata.style,
                        season=metadata.season,
                        colors=metadata.colors,
                        tags=metadata.tags,
                        status=ItemStatus.PROCESSING,
                    )
                )
            except StorageFault:
                self._abandon(None, image_url, correlation_id)
                raise

            try:
                description = (self.embedder.describe_image(data, content_type) or "").strip()
                if not description:
                    raise EmbeddingUnavailable("Description came back empty")
                if self.variant == "image":
                    vector = self.embedder.embed_image(data, content_type)
                else:
                    vector = self.embedder.embed_text(description)
                if not vector:
                    raise EmbeddingUnavailable("Embedding came back empty")
            except EmbeddingUnavailable as exc:
                log_event(
                    logger,
                    logging.WARNING,
                    "ingestion_analysis_failed",
                    item_id=item.item_id,
                    detail=str(exc),
                    correlation_id=correlation_id,
                )
                self._abandon(item.item_id, image_url, correlation_id)
                raise ServiceUnavailable("Failed to analyze image") from exc
            except Exception as exc:
                log_event(
                    logger,
                    logging.ERROR,
                    "ingestion_analysis_error",
                    item_id=item.item_id,
                    error_type=type(exc).__name__,
                    correlation_id=correlation_id,
                )
                self._abandon(item.item_id, image_url, correlation_id)
                raise

            try:
                ready = self.store.update_embedding(item.item_id or "", vector, description=description)
            except (StorageFault, NotFound) as exc:
                self._abandon(item.item_id, image_url, correlation_id)
                raise StorageFault("Failed to persist item embedding") from exc

            log_event(
                logger,
                logging.INFO,
                "agent_call_completed",
                agent="wardrobe_ingestion",
                method="ingest",
                item_id=ready.item_id,
                variant=self.variant,
                correlation_id=correlation_id,
            )
            return ready


__all__ = ["WardrobeIngestionAgent"]
