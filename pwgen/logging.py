"""
Logging setup for the server and client entry points

Both components log through structlog on top of stdlib logging. Records
always go to a rotating file under the configured log directory; the stderr
handler is optional so the interactive client can keep log lines out of
its prompt.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

import structlog
import structlog.stdlib

from pwgen.config import settings
from pwgen.exceptions import ConfigurationError

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_MAX_LOG_BYTES = 5 * 1024 * 1024
_LOG_BACKUPS = 5

# Handlers added by the last setup_logging() call
_installed_handlers: List[logging.Handler] = []


def log_file_path(component: str, log_dir: Optional[Union[str, Path]] = None) -> Path:
    """Path of the log file for a component (<log_dir>/<component>.log)."""
    base = Path(log_dir) if log_dir is not None else settings.log_dir
    return base.expanduser() / f"{component}.log"


def _open_log_file(log_path: Path) -> RotatingFileHandler:
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            log_path,
            maxBytes=_MAX_LOG_BYTES,
            backupCount=_LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        raise ConfigurationError(
            f"Cannot open log file {log_path}",
            details={"error": str(e)},
        ) from e


def _replace_root_handlers(handlers: List[logging.Handler], level: int) -> None:
    root = logging.getLogger()
    while _installed_handlers:
        old = _installed_handlers.pop()
        root.removeHandler(old)
        old.close()

    formatter = logging.Formatter(_LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
        _installed_handlers.append(handler)
    root.setLevel(level)


def setup_logging(
    component: str = "server",
    level: int = logging.INFO,
    console: bool = True,
    log_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """
    Configure structlog + stdlib logging for a component.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        component: Log file name stem ("server", "client")
        level: Minimum level for both handlers
        console: Also log to stderr
        log_dir: Directory for the log file, defaults to settings.log_dir

    Returns:
        Path of the log file

    Raises:
        ConfigurationError: If the log file cannot be opened
    """
    log_path = log_file_path(component, log_dir)
    handlers: List[logging.Handler] = [_open_log_file(log_path)]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    _replace_root_handlers(handlers, level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger(__name__).info(
        "logging_initialized",
        component=component,
        log_file=str(log_path),
        console=console,
    )
    return log_path
