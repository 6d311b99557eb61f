"""Root logger wiring for the CLI and the monitor."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List

from .config import AppConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("urllib3", "apscheduler")

# marks handlers we installed so a second call replaces only those
_OWNED = "_netradar_handler"


def _owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED, True)
    return handler


def _build_handlers(config: AppConfig, log_path: Path) -> List[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=config.logging.max_bytes,
        backupCount=config.logging.backup_count,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()
    handlers = [file_handler, console_handler]
    for handler in handlers:
        handler.setFormatter(formatter)
        _owned(handler)
    return handlers


def release_handlers(root: logging.Logger) -> None:
    """Detach and close the handlers a previous configure call installed."""
    for handler in list(root.handlers):
        if getattr(handler, _OWNED, False):
            root.removeHandler(handler)
            handler.close()


def configure_logging(config: AppConfig) -> Path:
    """Send records to a rotating file under ``logs_dir`` and to stderr.

    Handlers attached by the host application are left alone. Returns the
    log file path.
    """
    log_dir = config.paths.logs_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / config.logging.file_name

    level = logging.getLevelName(config.logging.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level {config.logging.level!r}")

    root = logging.getLogger()
    release_handlers(root)
    root.setLevel(level)
    for handler in _build_handlers(config, log_path):
        root.addHandler(handler)

    # requests and the scheduler are chatty at INFO
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return log_path
