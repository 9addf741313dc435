"""Error taxonomy and stage results shared by the recommendation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class WardrobeError(Exception):
    """Base class for every fault raised by the curator core."""


class InvalidRequest(WardrobeError):
    """Malformed caller input; carries field level details for the response."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class Unauthorized(WardrobeError):
    """Missing or invalid auth context on a scoped operation."""


class EmbeddingUnavailable(WardrobeError):
    """Embedding or description oracle unreachable or returned empty output."""


class NotFound(WardrobeError):
    """Referenced record is absent."""


class StorageFault(WardrobeError):
    """Persistence layer unreachable or rejected the write."""


class ConstraintViolation(StorageFault):
    """A record is missing required fields or breaks a column invariant."""


class ServiceUnavailable(WardrobeError):
    """Both the primary and the fallback path failed."""


class ErrorKind(str, Enum):
    EMBEDDING_UNAVAILABLE = "embedding_unavailable"
    EMPTY_RESULT = "empty_result"
    STORAGE_FAULT = "storage_fault"
    ORACLE_FAILED = "oracle_failed"
    MALFORMED_RESPONSE = "malformed_response"


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of one pipeline stage: either a value or an error kind."""

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    detail: str = field(default="", compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "StageResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, detail: str = "") -> "StageResult[T]":
        return cls(error=kind, detail=detail)


__all__ = [
    "WardrobeError",
    "InvalidRequest",
    "Unauthorized",
    "EmbeddingUnavailable",
    "NotFound",
    "StorageFault",
    "ConstraintViolation",
    "ServiceUnavailable",
    "ErrorKind",
    "StageResult",
]
