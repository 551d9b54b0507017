"""Application-wide configuration helpers and constants."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Final
from urllib.parse import quote_plus

from dotenv import load_dotenv

BASE_DIR: Final[Path] = Path(__file__).resolve().parent

load_dotenv(BASE_DIR / ".env")


logger = logging.getLogger(__name__)


def _clean_text(value: str | None) -> str:
    """Return ``value`` stripped of surrounding whitespace."""

    if value is None:
        return ""
    return value.strip()


def _path_from(env_value: str | None, default: str | Path) -> Path:
    """Resolve a filesystem path using an environment override when provided."""

    text = _clean_text(env_value)
    candidate = Path(text) if text else Path(default)
    candidate = candidate.expanduser()
    if candidate.is_absolute():
        try:
            return candidate.resolve()
        except (OSError, RuntimeError):  # pragma: no cover - fallback for exotic paths
            return candidate
    return candidate


def _optional_path_from(env_value: str | None) -> Path | None:
    """Return a resolved path for ``env_value`` or ``None`` when it is unset."""

    if not _clean_text(env_value):
        return None
    return _path_from(env_value, "")


def _coerce_positive_float(value: str | None, default: float) -> float:
    """Return ``value`` coerced to a positive float or ``default`` when invalid."""

    text = _clean_text(value)
    if not text:
        return default
    try:
        numeric = float(text)
    except (TypeError, ValueError):
        return default
    return numeric if numeric > 0 else default


def _coerce_positive_int(value: str | None, default: int) -> int:
    """Return ``value`` coerced to a positive integer or ``default`` when invalid."""

    text = _clean_text(value)
    if not text:
        return default
    try:
        numeric = int(float(text))
    except (TypeError, ValueError):
        return default
    return numeric if numeric > 0 else default


def _coerce_truthy_env(value: str | None) -> bool:
    """Return ``True`` when ``value`` represents an affirmative flag."""

    if value is None:
        return False
    text = value.strip().lower()
    return text in {"1", "true", "yes", "on"}


DATA_DIR_PATH: Final[Path] = _path_from(os.environ.get("DATA_DIR"), BASE_DIR)
DATA_DIR: Final[str] = os.fspath(DATA_DIR_PATH)

ICONS_DIR_PATH: Final[Path] = _path_from(
    os.environ.get("ICONS_DIR"), DATA_DIR_PATH / "icons"
)
ICONS_DIR: Final[str] = os.fspath(ICONS_DIR_PATH)

LOG_DIR_PATH: Final[Path] = _path_from(os.environ.get("LOG_DIR"), BASE_DIR / "logs")
LOG_DIR: Final[str] = os.fspath(LOG_DIR_PATH)
LOG_FILE_PATH: Final[Path] = _path_from(
    os.environ.get("LOG_FILE"), LOG_DIR_PATH / "app.log"
)
LOG_FILE: Final[str] = os.fspath(LOG_FILE_PATH)

DEFAULT_EPIC_MANIFESTS_DIR: Final[str] = (
    r"C:\ProgramData\Epic\EpicGamesLauncher\Data\Manifests"
)
EPIC_MANIFESTS_DIR: Final[Path] = _path_from(
    os.environ.get("EPIC_MANIFESTS_DIR"), DEFAULT_EPIC_MANIFESTS_DIR
)
STEAM_PATH: Final[Path | None] = _optional_path_from(os.environ.get("STEAM_PATH"))

DB_HOST: Final[str] = _clean_text(os.environ.get("DB_HOST")) or "localhost"
DB_PORT: Final[int] = _coerce_positive_int(os.environ.get("DB_PORT"), 3306)
DB_NAME: Final[str] = _clean_text(os.environ.get("DB_NAME")) or "game_tracker"
DB_USER: Final[str] = _clean_text(os.environ.get("DB_USER"))
DB_PASSWORD: Final[str] = _clean_text(os.environ.get("DB_PASSWORD"))


def _build_db_dsn() -> str:
    """Return a database DSN constructed from environment configuration."""

    explicit = _clean_text(os.environ.get("DB_DSN"))
    if explicit:
        return explicit

    maria_overrides = {
        key: _clean_text(os.environ.get(key))
        for key in ("DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD")
    }
    if any(value for value in maria_overrides.values()):
        auth = ""
        if DB_USER:
            password = quote_plus(DB_PASSWORD) if DB_PASSWORD else ""
            auth = DB_USER
            if password:
                auth = f"{auth}:{password}"
            auth = f"{auth}@"
        return f"mariadb://{auth}{DB_HOST}:{DB_PORT}/{DB_NAME}"

    sqlite_path = _path_from(None, DATA_DIR_PATH / "game_tracker.db").resolve()
    return f"sqlite:///{sqlite_path.as_posix()}"


DB_DSN: Final[str] = _build_db_dsn()

DB_TIMEOUT_SECONDS: Final[float] = _coerce_positive_float(
    os.environ.get("DB_TIMEOUT"), 5.0
)
RUN_DB_MIGRATIONS: Final[bool] = not _coerce_truthy_env(
    os.environ.get("SKIP_DB_MIGRATIONS")
)

DEFAULT_RAWG_BASE_URL: Final[str] = "https://api.rawg.io/api"
RAWG_BASE_URL: Final[str] = (
    _clean_text(os.environ.get("RAWG_BASE_URL")) or DEFAULT_RAWG_BASE_URL
)
RAWG_API_KEY: Final[str] = _clean_text(os.environ.get("RAWG_API_KEY"))
RAWG_TIMEOUT_SECONDS: Final[float] = _coerce_positive_float(
    os.environ.get("RAWG_TIMEOUT"), 10.0
)

DEFAULT_USER_AGENT: Final[str] = "GameTracker/1.0"
USER_AGENT: Final[str] = (
    _clean_text(os.environ.get("GAME_TRACKER_USER_AGENT")) or DEFAULT_USER_AGENT
)


def validate_rawg_credentials(api_key: str | None = None) -> bool:
    """Return ``True`` when a RAWG API key is configured, logging otherwise."""

    key = _clean_text(api_key if api_key is not None else RAWG_API_KEY)
    if not key:
        logger.warning(
            "RAWG_API_KEY is not set; catalog search and enrichment will fail."
        )
        return False
    return True


__all__ = [
    "BASE_DIR",
    "DATA_DIR",
    "DATA_DIR_PATH",
    "DB_DSN",
    "DB_HOST",
    "DB_NAME",
    "DB_PASSWORD",
    "DB_PORT",
    "DB_TIMEOUT_SECONDS",
    "DB_USER",
    "DEFAULT_EPIC_MANIFESTS_DIR",
    "DEFAULT_RAWG_BASE_URL",
    "DEFAULT_USER_AGENT",
    "EPIC_MANIFESTS_DIR",
    "ICONS_DIR",
    "ICONS_DIR_PATH",
    "LOG_DIR",
    "LOG_DIR_PATH",
    "LOG_FILE",
    "LOG_FILE_PATH",
    "RAWG_API_KEY",
    "RAWG_BASE_URL",
    "RAWG_TIMEOUT_SECONDS",
    "RUN_DB_MIGRATIONS",
    "STEAM_PATH",
    "USER_AGENT",
    "validate_rawg_credentials",
]
