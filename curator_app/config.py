"""Configuration helpers for the wardrobe curator service."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_EMBEDDING_MODEL = "models/text-embedding-004"
DEFAULT_GEMINI_MODEL = "models/gemini-1.5-flash-002"

CATALOG_MODES = ("owner", "shared")
EMBEDDING_BACKENDS = ("gemini", "hashing")
INGESTION_VARIANTS = ("description", "image")

MIN_TIMEOUT_SECONDS = 10.0
MAX_TIMEOUT_SECONDS = 30.0


def _as_bool(value: object, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class CuratorConfig:
    """Configuration values for the curator service.

    ``catalog_mode`` picks the deployment variant explicitly: ``owner`` scopes
    every query and upload to the authenticated caller, ``shared`` serves one
    open catalog without requiring an auth context.
    """

    google_api_key: Optional[str] = None
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    vision_model: str = DEFAULT_GEMINI_MODEL
    judge_model: str = DEFAULT_GEMINI_MODEL
    embedding_backend: str = "gemini"
    wardrobe_db_path: str = "data/wardrobe.db"
    upload_dir: str = "data/uploads"
    public_base_url: str = "/uploads"
    catalog_mode: str = "owner"
    ingestion_variant: str = "description"
    request_timeout_seconds: float = 20.0
    confidence_validation: bool = True
    max_upload_bytes: int = 5 * 1024 * 1024
    environment: str | None = None

    def __post_init__(self) -> None:
        self.catalog_mode = self.catalog_mode.strip().lower()
        if self.catalog_mode not in CATALOG_MODES:
            raise ValueError(f"Unsupported catalog_mode '{self.catalog_mode}'. Allowed: {list(CATALOG_MODES)}")
        self.embedding_backend = self.embedding_backend.strip().lower()
        if self.embedding_backend not in EMBEDDING_BACKENDS:
            raise ValueError(
                f"Unsupported embedding_backend '{self.embedding_backend}'. Allowed: {list(EMBEDDING_BACKENDS)}"
            )
        self.ingestion_variant = self.ingestion_variant.strip().lower()
        if self.ingestion_variant not in INGESTION_VARIANTS:
            raise ValueError(
                f"Unsupported ingestion_variant '{self.ingestion_variant}'. Allowed: {list(INGESTION_VARIANTS)}"
            )
        timeout = float(self.request_timeout_seconds)
        self.request_timeout_seconds = min(max(timeout, MIN_TIMEOUT_SECONDS), MAX_TIMEOUT_SECONDS)
        if int(self.max_upload_bytes) <= 0:
            raise ValueError("max_upload_bytes must be positive")
        self.max_upload_bytes = int(self.max_upload_bytes)

    @property
    def requires_auth(self) -> bool:
        return self.catalog_mode == "owner"

    @classmethod
    def from_env(cls) -> "CuratorConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default. Environment variables win over file values so secrets can be
        injected by the runtime.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("CURATOR_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            return os.getenv(key.upper(), yaml_config.get(key, default))

        return cls(
            google_api_key=get_value("google_api_key"),
            embedding_model=str(get_value("embedding_model") or DEFAULT_EMBEDDING_MODEL),
            vision_model=str(get_value("vision_model") or DEFAULT_GEMINI_MODEL),
            judge_model=str(get_value("judge_model") or DEFAULT_GEMINI_MODEL),
            embedding_backend=str(get_value("embedding_backend") or "gemini"),
            wardrobe_db_path=str(get_value("wardrobe_db_path") or "data/wardrobe.db"),
            upload_dir=str(get_value("upload_dir") or "data/uploads"),
            public_base_url=str(get_value("public_base_url") or "/uploads"),
            catalog_mode=str(get_value("catalog_mode") or "owner"),
            ingestion_variant=str(get_value("ingestion_variant") or "description"),
            request_timeout_seconds=float(get_value("request_timeout_seconds") or 20.0),
            confidence_validation=_as_bool(get_value("confidence_validation"), True),
            max_upload_bytes=int(get_value("max_upload_bytes") or 5 * 1024 * 1024),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a flat ``key: value`` config file."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config


__all__ = ["CuratorConfig", "DEFAULT_EMBEDDING_MODEL", "DEFAULT_GEMINI_MODEL"]
