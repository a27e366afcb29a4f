"""Logging for the wizard process: a rotating file, and the console only on request."""

import logging
import logging.handlers
from pathlib import Path
from typing import Any

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# httpx logs every request at INFO; the collaborators log their own failures
_QUIET_LOGGERS = ("httpx", "httpcore")


def _level(cfg: dict[str, Any]) -> int:
    level = logging.getLevelName(str(cfg.get("level", "INFO")).upper())
    return level if isinstance(level, int) else logging.INFO


def _build_handlers(project_root: Path, cfg: dict[str, Any]) -> list[logging.Handler]:
    log_path = project_root / cfg.get("file", "logs/wizard.log")
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=int(cfg.get("max_bytes", 10 * 1024 * 1024)),
            backupCount=int(cfg.get("backup_count", 3)),
            encoding="utf-8",
        )
    ]
    # questionary owns the terminal while the wizard runs
    if cfg.get("log_to_console", False):
        handlers.append(logging.StreamHandler())
    return handlers


def setup_logging(project_root: Path, settings: dict[str, Any]) -> None:
    """Replace the root logger's handlers with the ones described by settings["logging"]."""
    cfg = settings.get("logging", {})
    level = _level(cfg)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    for old in root.handlers[:]:
        root.removeHandler(old)
    for handler in _build_handlers(project_root, cfg):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
