"""Binary storage for uploaded garment images."""

from __future__ import annotations

import re
import time
import uuid
from pathlib import Path

from curator_app.errors import NotFound, StorageFault

_CONTENT_TYPE_SUFFIXES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
_SUFFIX_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


class BinaryStore:
    """Persistence interface for image binaries."""

    def save(self, data: bytes, content_type: str, filename: str | None = None) -> str:
        raise NotImplementedError

    def delete(self, ref: str) -> None:
        raise NotImplementedError


class LocalBinaryStore(BinaryStore):
    """Stores binaries on local disk and serves them under ``public_base_url``."""

    def __init__(self, root: str | Path = "data/uploads", public_base_url: str = "/uploads") -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    @staticmethod
    def _safe_name(filename: str | None, content_type: str) -> str:
        stem = Path(filename or "").stem
        stem = re.sub(r"[^A-Za-z0-9._-]+", "-", stem).strip("-.") or "image"
        suffix = Path(filename or "").suffix.lower()
        if suffix not in _SUFFIX_CONTENT_TYPES:
            suffix = _CONTENT_TYPE_SUFFIXES.get(content_type.lower(), ".bin")
        return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{stem[:64]}{suffix}"

    def _resolve(self, ref: str) -> Path:
        name = ref.rsplit("/", 1)[-1]
        path = (self.root / name).resolve()
        if path.parent != self.root.resolve() or not name:
            raise NotFound("Unknown binary reference")
        return path

    def save(self, data: bytes, content_type: str, filename: str | None = None) -> str:
        name = self._safe_name(filename, content_type)
        try:
            (self.root / name).write_bytes(data)
        except OSError as exc:
            raise StorageFault("Failed to persist image binary") from exc
        return f"{self.public_base_url}/{name}"

    def delete(self, ref: str) -> None:
        """Remove a stored binary; deleting a missing binary is a no-op."""

        try:
            self._resolve(ref).unlink(missing_ok=True)
        except NotFound:
            return
        except OSError as exc:
            raise StorageFault("Failed to delete image binary") from exc

    def open(self, name: str) -> tuple[bytes, str]:
        """Return the stored bytes and their content type."""

        path = self._resolve(name)
        if not path.is_file():
            raise NotFound("Unknown binary reference")
        content_type = _SUFFIX_CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")
        return path.read_bytes(), content_type


__all__ = ["BinaryStore", "LocalBinaryStore"]
