# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Telemetry for page-load classifications.

    from page_load_type import telemetry
    from page_load_type.telemetry.collector import TelemetryConfig

    telemetry.configure(TelemetryConfig.from_env())

Until ``configure()`` runs, and while the configured collector is disabled,
``emit`` is a no-op.  No function here raises: a telemetry fault never
changes a classification.
"""

from __future__ import annotations

import atexit
import contextlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .collector import TelemetryCollector, TelemetryConfig
    from .writer import Writer

_collector: TelemetryCollector | None = None


def configure(config: TelemetryConfig, *, writer: Writer | None = None) -> TelemetryCollector:
    """Install the process-wide collector; a second call returns the first one."""
    global _collector
    if _collector is None:
        from .collector import TelemetryCollector

        _collector = TelemetryCollector(config, writer=writer)
        atexit.register(shutdown)
    return _collector


def emit(event_type: str, payload: Mapping[str, object]) -> None:
    collector = _collector
    if collector is None:
        return
    with contextlib.suppress(Exception):
        collector.emit(event_type, payload)


def shutdown() -> None:
    """Write buffered events.  Safe to call more than once."""
    collector = _collector
    if collector is None:
        return
    with contextlib.suppress(Exception):
        collector.shutdown()


def _reset_for_testing() -> None:
    global _collector
    shutdown()
    _collector = None
