"""Utility helpers for configuring structlog logging of integrations."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog


def configure_logging(settings: Optional[Dict[str, Any]] = None, *, verbose: bool = False) -> None:
    """Route structlog output of an integration to stderr.

    ``settings`` may carry ``level``, ``json`` and ``log_file``; ``verbose``
    forces DEBUG. Stdout stays free for the payload.
    """

    settings = settings or {}
    if verbose:
        level = logging.DEBUG
    else:
        level_name = str(settings.get("level", "info")).upper()
        level = getattr(logging, level_name, logging.INFO)
    handlers: list[logging.Handler] = []

    if settings.get("json", False):
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.processors.KeyValueRenderer(key_order=["event", "level", "integration"])

    shared_processors = [
        structlog.processors.TimeStamper(key="timestamp", fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    log_file = settings.get("log_file")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(level=level, handlers=handlers, format="%(message)s", force=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "infra_integrations") -> structlog.stdlib.BoundLogger:
    """Return a logger bound to the SDK namespace."""

    return structlog.get_logger(name)
