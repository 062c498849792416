import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ideaboard.config.loader import get_logging_settings

APP_LOGGER = "ideaboard"


def _prune_backups(log_dir: Path, base_name: str, backup_count: int) -> None:
    if backup_count < 1:
        return
    candidates: Iterable[Path] = sorted(
        log_dir.glob(f"{base_name}.*"),
        key=lambda path: path.stat().st_mtime,
        reverse=True,
    )
    for stale in list(candidates)[backup_count:]:
        try:
            stale.unlink()
        except OSError:
            continue


def _file_handler(path: Path, settings: Dict[str, Any], level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "default",
        "filename": str(path),
        "maxBytes": settings["max_bytes"],
        "backupCount": settings["backup_count"],
        "level": level,
        "encoding": "utf8",
    }


def build_logging_config(settings: Dict[str, Any]) -> Dict[str, Any]:
    """
    Translate logging settings into a dictConfig mapping.

    The ``ideaboard`` logger owns the handlers; module loggers such as
    ``ideaboard.voting`` only carry their configured level and propagate to it.
    Server and audit loggers stay on the console and ``app.log``.
    """
    log_dir = Path(settings["directory"])
    root_level = settings["level"]
    module_levels: Dict[str, str] = dict(settings["loggers"])
    app_level = module_levels.pop(APP_LOGGER, "DEBUG")

    loggers: Dict[str, Dict[str, Any]] = {
        "": {
            "handlers": ["console", "file_app", "file_error"],
            "level": root_level,
            "propagate": True,
        },
        "uvicorn": {
            "handlers": ["console", "file_app"],
            "level": root_level,
            "propagate": False,
        },
        "uvicorn.access": {
            "handlers": ["console", "file_app"],
            "level": root_level,
            "propagate": False,
        },
        "uvicorn.error": {
            "handlers": ["console", "file_error"],
            "level": root_level,
            "propagate": False,
        },
        "auth_module": {
            "handlers": ["console", "file_app"],
            "level": root_level,
            "propagate": False,
        },
        "audit": {
            "handlers": ["console", "file_app"],
            "level": "INFO",
            "propagate": False,
        },
        APP_LOGGER: {
            "handlers": ["console", "file_app", "file_error"],
            "level": app_level,
            "propagate": False,
        },
    }
    for name, level in sorted(module_levels.items()):
        loggers[name] = {"level": level, "propagate": True}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": root_level,
            },
            "file_app": _file_handler(log_dir / "app.log", settings, "INFO"),
            "file_error": _file_handler(log_dir / "error.log", settings, "ERROR"),
        },
        "loggers": loggers,
    }


def setup_logging(settings: Optional[Dict[str, Any]] = None):
    """Configure console and rotating file logging from config.yaml."""
    settings = settings or get_logging_settings()
    log_dir = Path(settings["directory"])
    log_dir.mkdir(parents=True, exist_ok=True)
    _prune_backups(log_dir, "app.log", settings["backup_count"])
    _prune_backups(log_dir, "error.log", settings["backup_count"])

    logging.config.dictConfig(build_logging_config(settings))
    logging.getLogger(APP_LOGGER).info(
        "Logging configured (level %s, %d module overrides).",
        settings["level"],
        len(settings["loggers"]) - (1 if APP_LOGGER in settings["loggers"] else 0),
    )
