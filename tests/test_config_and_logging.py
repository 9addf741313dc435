"""Configuration loading, auth resolution and structured logging tests."""

from __future__ import annotations

import json
import logging

import pytest

from curator_app.auth import resolve_auth_context
from curator_app.config import CuratorConfig
from curator_app.errors import ErrorKind, StageResult
from curator_app.logging_config import (
    CORRELATION_ID,
    JsonFormatter,
    correlation_context,
    log_event,
    redact_for_log,
)
from tools.observability import instrument_call


def test_config_reads_environment_file_and_env_overrides(tmp_path, monkeypatch) -> None:
    config_dir = tmp_path / "environments"
    config_dir.mkdir()
    (config_dir / "staging.yaml").write_text(
        "# staging settings\n"
        "catalog_mode: shared\n"
        "embedding_backend: 'hashing'\n"
        "request_timeout_seconds: 45\n"
        "confidence_validation: false\n"
    )
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("CURATOR_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("WARDROBE_DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.delenv("CATALOG_MODE", raising=False)
    monkeypatch.delenv("EMBEDDING_BACKEND", raising=False)
    monkeypatch.delenv("CONFIDENCE_VALIDATION", raising=False)
    monkeypatch.delenv("REQUEST_TIMEOUT_SECONDS", raising=False)

    config = CuratorConfig.from_env()

    assert config.environment == "staging"
    assert config.catalog_mode == "shared"
    assert config.requires_auth is False
    assert config.embedding_backend == "hashing"
    assert config.request_timeout_seconds == 30.0
    assert config.confidence_validation is False
    assert config.wardrobe_db_path == str(tmp_path / "env.db")


def test_config_defaults_and_validation() -> None:
    config = CuratorConfig(request_timeout_seconds=1)

    assert config.catalog_mode == "owner"
    assert config.requires_auth is True
    assert config.request_timeout_seconds == 10.0
    assert config.max_upload_bytes == 5 * 1024 * 1024
    with pytest.raises(ValueError):
        CuratorConfig(catalog_mode="public")
    with pytest.raises(ValueError):
        CuratorConfig(embedding_backend="clip")
    with pytest.raises(ValueError):
        CuratorConfig(ingestion_variant="video")


def test_resolve_auth_context_reads_gateway_headers() -> None:
    context = resolve_auth_context({"X-User-Id": " alice ", "X-User-Email": "alice@example.com"})

    assert context is not None
    assert context.user_id == "alice"
    assert context.email == "alice@example.com"
    assert resolve_auth_context({"X-User-Email": "alice@example.com"}) is None
    assert resolve_auth_context({"x-user-id": "   "}) is None


def test_redaction_masks_identifiers_and_locations() -> None:
    scrubbed = redact_for_log(
        {
            "user_id": "alice",
            "query": "red dress",
            "note": "contact alice@example.com",
            "link": "https://cdn.example.com/a.jpg",
            "nested": [{"image_url": "/uploads/a.jpg", "count": 2}],
        }
    )

    assert scrubbed["user_id"] == "[redacted]"
    assert scrubbed["query"] == "[redacted]"
    assert scrubbed["note"] == "contact [redacted-email]"
    assert scrubbed["link"] == "[redacted-url]"
    assert scrubbed["nested"] == [{"image_url": "[redacted]", "count": 2}]


def test_log_event_emits_json_with_correlation_id() -> None:
    records = []

    class _Capture(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(JsonFormatter().format(record))

    logger = logging.getLogger("tests.structured")
    handler = _Capture()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        with correlation_context("corr-1"):
            log_event(logger, logging.INFO, "ranker_completed", mode="vector", query="navy shirt")
    finally:
        logger.removeHandler(handler)

    payload = json.loads(records[-1])
    assert payload["event"] == "ranker_completed"
    assert payload["correlation_id"] == "corr-1"
    assert payload["mode"] == "vector"
    assert payload["query"] == "[redacted]"


def test_log_event_outside_an_operation_leaves_no_correlation_id_behind() -> None:
    log_event(logging.getLogger("tests.structured"), logging.DEBUG, "orphan_event")

    assert CORRELATION_ID.get() is None


def test_instrumented_calls_get_their_own_correlation_ids() -> None:
    seen = []

    @instrument_call("tests.record")
    def record() -> None:
        seen.append(CORRELATION_ID.get())

    record()
    record()

    assert None not in seen
    assert seen[0] != seen[1]
    assert CORRELATION_ID.get() is None
    with correlation_context("corr-2"):
        record()
    assert seen[-1] == "corr-2"


def test_stage_result_ok_tracks_the_error_kind() -> None:
    assert StageResult.success([]).ok is True
    failed = StageResult.failure(ErrorKind.STORAGE_FAULT, "locked")
    assert failed.ok is False
    assert failed.detail == "locked"
