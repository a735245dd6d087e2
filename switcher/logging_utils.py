"""Logging helpers for the switcher CLI."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that only get DEBUG at the highest verbosity
_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def resolve_level(base: str, verbose: int = 0, quiet: bool = False) -> int:
    """Combine the configured level with ``-v``/``-q`` flags."""
    if quiet:
        return logging.WARNING
    if verbose:
        return logging.DEBUG
    level = logging.getLevelName(base.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int = logging.INFO, fmt: str = "compact", verbose: int = 0) -> None:
    """Configure root logging for CLI usage, replacing earlier handlers."""
    if fmt == "pretty":
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt=_DATE_FORMAT))
    else:
        handler = logging.StreamHandler()
        if fmt == "json":
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))

    logging.basicConfig(level=level, handlers=[handler], force=True)

    noisy_level = logging.DEBUG if verbose >= 2 else max(level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
