import logging

from ideaboard.utils.logging_config import build_logging_config, setup_logging


def _settings(tmp_path, **overrides):
    settings = {
        "directory": str(tmp_path / "logs"),
        "max_bytes": 2048,
        "backup_count": 2,
        "level": "WARNING",
        "loggers": {"ideaboard": "INFO", "ideaboard.voting": "DEBUG"},
    }
    settings.update(overrides)
    return settings


def test_module_loggers_propagate_to_the_app_logger(tmp_path):
    config = build_logging_config(_settings(tmp_path))
    loggers = config["loggers"]

    assert loggers["ideaboard"]["level"] == "INFO"
    assert loggers["ideaboard"]["propagate"] is False
    assert loggers["ideaboard.voting"] == {"level": "DEBUG", "propagate": True}
    assert loggers[""]["level"] == "WARNING"
    assert loggers["audit"]["level"] == "INFO"


def test_file_handlers_use_rotation_settings(tmp_path):
    handlers = build_logging_config(_settings(tmp_path))["handlers"]

    assert handlers["file_app"]["filename"] == str(tmp_path / "logs" / "app.log")
    assert handlers["file_app"]["maxBytes"] == 2048
    assert handlers["file_error"]["backupCount"] == 2
    assert handlers["file_error"]["level"] == "ERROR"


def test_setup_logging_applies_module_levels(tmp_path):
    names = ["", "uvicorn", "uvicorn.access", "uvicorn.error", "auth_module", "audit"]
    names += ["ideaboard", "ideaboard.voting"]
    saved = {
        name: (
            list(logging.getLogger(name).handlers),
            logging.getLogger(name).level,
            logging.getLogger(name).propagate,
        )
        for name in names
    }
    try:
        setup_logging(_settings(tmp_path))

        assert (tmp_path / "logs").is_dir()
        assert logging.getLogger("ideaboard.voting").level == logging.DEBUG
        assert logging.getLogger("ideaboard").level == logging.INFO
        assert logging.getLogger("ideaboard.sessions").getEffectiveLevel() == (
            logging.INFO
        )
    finally:
        for name, (handlers, level, propagate) in saved.items():
            target = logging.getLogger(name)
            for handler in list(target.handlers):
                target.removeHandler(handler)
                if handler not in handlers:
                    handler.close()
            for handler in handlers:
                target.addHandler(handler)
            target.setLevel(level)
            target.propagate = propagate
