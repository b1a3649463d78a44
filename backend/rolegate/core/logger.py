"""Logging setup shared by the API process."""
from __future__ import annotations

import logging

from .config import get_settings

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install one console handler on the root logger and merge uvicorn's loggers into it."""

    global _configured
    if _configured:
        return

    resolved = getattr(logging, (level or get_settings().log_level).upper(), logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(resolved)
    console.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    root.addHandler(console)
    root.setLevel(resolved)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True

    _configured = True
