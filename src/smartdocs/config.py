"""
Configuration helpers for SmartDocs services.

Every setting is read from a ``SMARTDOCS_*`` environment variable with an
explicit default; constructor arguments always win over the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "~/.smartdocs/smartdocs.duckdb"
DEFAULT_BLOB_ROOT = "~/.smartdocs/blobs"
ENV_DB_PATH = "SMARTDOCS_DB_PATH"
ENV_BLOB_ROOT = "SMARTDOCS_BLOB_ROOT"

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_ALLOWED_FILE_TYPES = ("pdf", "txt", "md")


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) SMARTDOCS_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def resolve_blob_root(override_path: str | None = None) -> str:
    """Resolve and create the local blob root directory."""
    raw_path = override_path or os.getenv(ENV_BLOB_ROOT) or DEFAULT_BLOB_ROOT
    resolved = Path(raw_path).expanduser().resolve()
    resolved.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return tuple(item.strip().lower().lstrip(".") for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Process-wide settings gathered once at startup."""

    google_api_key: str | None = None
    db_path: str | None = None
    blob_root: str | None = None
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    allowed_file_types: tuple[str, ...] = DEFAULT_ALLOWED_FILE_TYPES
    search_limit: int = 5
    min_score: float | None = None
    context_max_chars: int = 12000
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:5173"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            google_api_key=os.getenv("GOOGLE_API_KEY"),
            db_path=os.getenv(ENV_DB_PATH),
            blob_root=os.getenv(ENV_BLOB_ROOT),
            max_file_size=int(
                os.getenv("SMARTDOCS_MAX_FILE_SIZE", str(DEFAULT_MAX_FILE_SIZE))
            ),
            allowed_file_types=_env_list(
                "SMARTDOCS_ALLOWED_FILE_TYPES", DEFAULT_ALLOWED_FILE_TYPES
            ),
            search_limit=int(os.getenv("SMARTDOCS_SEARCH_LIMIT", "5")),
            min_score=_env_float("SMARTDOCS_MIN_SCORE"),
            context_max_chars=int(os.getenv("SMARTDOCS_CONTEXT_MAX_CHARS", "12000")),
            log_level=os.getenv("SMARTDOCS_LOG_LEVEL", "INFO"),
            frontend_url=os.getenv("SMARTDOCS_FRONTEND_URL", "http://localhost:5173"),
        )


def validate_settings(settings: Settings) -> list[str]:
    """Log missing configuration and return the names of missing variables."""
    missing: list[str] = []
    if not settings.google_api_key:
        missing.append("GOOGLE_API_KEY")

    if missing:
        logger.warning(f"Missing environment variables: {', '.join(missing)}")
        logger.warning("Summaries, search and chat need these to be configured.")
    else:
        logger.info("Google GenAI API key configured")
    return missing


def configure_logging(level: str | None = None) -> None:
    """Install a root handler for CLI and server processes."""
    logging.basicConfig(
        level=(level or os.getenv("SMARTDOCS_LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
