from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

_DEFAULT_DATABASE_URL = "sqlite:///./ideaboard.db"
_DEFAULT_SQLITE_SETTINGS = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "busy_timeout_ms": 30000,
    "write_retries": 5,
    "retry_backoff_ms": 200,
}
_DEFAULT_IDEA_LIMITS = {
    "text_character_limit": 500,
}
_DEFAULT_VOTING_RULES = {
    "enforce_point_budget": False,
    "enforce_unique_ranks": False,
}
_DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES = 30
_DEFAULT_LOGGING_SETTINGS = {
    "directory": "logs",
    "max_bytes": 5 * 1024 * 1024,
    "backup_count": 3,
    "level": "INFO",
    "loggers": {"ideaboard": "DEBUG"},
}

_TRUTHY = {"1", "true", "yes", "on"}
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def load_config() -> Dict[str, Any]:
    """Load the application config from YAML, returning an empty mapping on error."""
    try:
        with _CONFIG_PATH.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
            if isinstance(data, dict):
                return data
            logging.warning(
                "Config file %s is not a mapping; using defaults.", _CONFIG_PATH
            )
            return {}
    except FileNotFoundError:
        logging.warning(
            "Configuration file %s not found; using defaults.", _CONFIG_PATH
        )
        return {}
    except Exception as exc:  # noqa: BLE001
        logging.error("Failed to load configuration from %s: %s", _CONFIG_PATH, exc)
        return {}


def _coerce_positive_int(value: Any, fallback: int) -> int:
    try:
        candidate = int(value)
        return candidate if candidate > 0 else fallback
    except Exception:  # noqa: BLE001
        return fallback


def _coerce_bool(value: Any, fallback: bool) -> bool:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def get_database_url() -> str:
    """
    Return the database URL.

    Priority:
    1) IDEABOARD_DATABASE_URL env var
    2) config.yaml database_url
    3) local SQLite file
    """
    env_value = os.getenv("IDEABOARD_DATABASE_URL")
    if env_value and env_value.strip():
        return env_value.strip()
    url = load_config().get("database_url")
    return str(url) if url else _DEFAULT_DATABASE_URL


def get_sqlite_settings() -> Dict[str, Any]:
    """Return SQLite pragma and write-retry settings with safe defaults."""
    section = load_config().get("sqlite") or {}
    defaults = dict(_DEFAULT_SQLITE_SETTINGS)
    return {
        "journal_mode": str(section.get("journal_mode") or defaults["journal_mode"]),
        "synchronous": str(section.get("synchronous") or defaults["synchronous"]),
        "busy_timeout_ms": _coerce_positive_int(
            section.get("busy_timeout_ms"), defaults["busy_timeout_ms"]
        ),
        "write_retries": _coerce_positive_int(
            section.get("write_retries"), defaults["write_retries"]
        ),
        "retry_backoff_ms": _coerce_positive_int(
            section.get("retry_backoff_ms"), defaults["retry_backoff_ms"]
        ),
    }


def get_access_token_expire_minutes() -> int:
    """
    Source the access token lifetime from config.yaml, falling back to
    IDEABOARD_ACCESS_TOKEN_EXPIRE_MINUTES, then a hard default.
    """
    section = load_config().get("auth") or {}
    config_value = _coerce_positive_int(section.get("access_token_expire_minutes"), 0)
    if config_value:
        return config_value
    return _coerce_positive_int(
        os.getenv("IDEABOARD_ACCESS_TOKEN_EXPIRE_MINUTES"),
        _DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def get_secure_cookies_enabled() -> bool:
    """
    Return whether auth cookies should be marked Secure.

    Priority:
    1) IDEABOARD_SECURE_COOKIES env var
    2) config.yaml auth.secure_cookies
    3) default False (local HTTP-friendly)
    """
    env_value = os.getenv("IDEABOARD_SECURE_COOKIES")
    if env_value is not None:
        return env_value.strip().lower() in _TRUTHY

    section = load_config().get("auth") or {}
    return _coerce_bool(section.get("secure_cookies"), False)


def get_idea_limits() -> Dict[str, int]:
    """Return idea text limits sourced from config with safe defaults."""
    section = load_config().get("ideas") or {}
    limits = dict(_DEFAULT_IDEA_LIMITS)
    limits["text_character_limit"] = _coerce_positive_int(
        section.get("text_character_limit"), limits["text_character_limit"]
    )
    return limits


def get_voting_rules() -> Dict[str, bool]:
    """Return the optional vote validation switches (permissive by default)."""
    section = load_config().get("voting") or {}
    defaults = dict(_DEFAULT_VOTING_RULES)
    return {
        "enforce_point_budget": _coerce_bool(
            section.get("enforce_point_budget"), defaults["enforce_point_budget"]
        ),
        "enforce_unique_ranks": _coerce_bool(
            section.get("enforce_unique_ranks"), defaults["enforce_unique_ranks"]
        ),
    }


def _coerce_level(value: Any, fallback: str) -> str:
    if isinstance(value, str) and value.strip().upper() in _LOG_LEVELS:
        return value.strip().upper()
    return fallback


def get_logging_settings() -> Dict[str, Any]:
    """
    Return log file placement, rotation and per-logger levels.

    IDEABOARD_LOG_DIR, LOG_MAX_BYTES and LOG_BACKUP_COUNT take priority over
    config.yaml. Unknown level names fall back to the defaults; only loggers
    under the ``ideaboard`` namespace are accepted.
    """
    section = load_config().get("logging") or {}
    defaults = dict(_DEFAULT_LOGGING_SETTINGS)

    directory = os.getenv("IDEABOARD_LOG_DIR") or section.get("directory")
    max_bytes = _coerce_positive_int(
        os.getenv("LOG_MAX_BYTES") or section.get("max_bytes"), defaults["max_bytes"]
    )
    backup_env = os.getenv("LOG_BACKUP_COUNT")
    backup_value = backup_env if backup_env is not None else section.get("backup_count")
    try:
        backup_count = max(0, int(backup_value))
    except (TypeError, ValueError):
        backup_count = defaults["backup_count"]

    loggers: Dict[str, str] = dict(defaults["loggers"])
    configured = section.get("loggers")
    if isinstance(configured, dict):
        for name, level in configured.items():
            name = str(name)
            if name != "ideaboard" and not name.startswith("ideaboard."):
                logging.warning("Ignoring log level for foreign logger '%s'.", name)
                continue
            loggers[name] = _coerce_level(level, loggers.get(name, "INFO"))

    return {
        "directory": str(directory or defaults["directory"]),
        "max_bytes": max_bytes,
        "backup_count": backup_count,
        "level": _coerce_level(section.get("level"), defaults["level"]),
        "loggers": loggers,
    }
