# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge for page_load_type.

Library modules log through ``logging.getLogger(__name__)``; the embedding
application calls ``configure()`` once.  Interactive use gets the
ConsoleRenderer, telemetry pipelines get one JSON object per line.

Leaf module, no page_load_type imports.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

# Namespace logger the package modules hang off.
PACKAGE_LOGGER = "page_load_type"


def configure(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
    package_level: str | None = None,
) -> None:
    """Configure structlog with a stdlib bridge.

    Args:
        json_output: True for JSON lines, False for human-readable output.
        level: Root logger level (default INFO).
        stream: Destination stream (default stderr).
        package_level: Optional separate level for the ``page_load_type``
            loggers, e.g. "DEBUG" to trace resolver state transitions.
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level(level))

    pkg = logging.getLogger(PACKAGE_LOGGER)
    pkg.setLevel(_level(package_level) if package_level else logging.NOTSET)


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)
