# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Telemetry collector: buffers page-load events and hands them to a writer.

Each event becomes one OTLP LogsData envelope holding a single logRecord
whose body is the event type and whose attributes are the sanitised
payload.  Events are buffered and written in batches of
``TelemetryConfig.batch_size`` and on ``flush``/``shutdown``.

A disabled collector does nothing at all: no envelope, no buffer, no I/O.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import queue
import time
from collections.abc import Mapping
from dataclasses import dataclass, field

from .privacy import URL_FIELDS, sanitize_payload, sanitize_url
from .writer import FileWriter, NullWriter, Writer

logger = logging.getLogger(__name__)

try:
    from importlib.metadata import version as _pkg_version

    _PACKAGE_VERSION = _pkg_version("page-load-type")
except Exception:
    _PACKAGE_VERSION = "unknown"

SCOPE_NAME = "page_load_type.telemetry"

_RESOURCE = {
    "attributes": [
        {"key": "service.name", "value": {"stringValue": "page_load_type"}},
        {"key": "service.version", "value": {"stringValue": _PACKAGE_VERSION}},
    ]
}

_TRUE_VALUES = ("1", "true", "yes")


def _default_export_path() -> str:
    return os.path.join(os.path.expanduser("~"), ".page_load_type", "telemetry")


@dataclass(frozen=True)
class TelemetryConfig:
    """Immutable telemetry configuration.  Off unless ``enabled``."""

    enabled: bool = False
    export_path: str = field(default_factory=_default_export_path)
    batch_size: int = 100
    max_queue_size: int = 10_000
    max_file_size_mb: int = 50
    max_retention_days: int = 7
    hash_url_paths: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TelemetryConfig:
        """``PAGE_LOAD_TYPE_TELEMETRY`` enables; ``..._TELEMETRY_PATH`` relocates."""
        env = os.environ if environ is None else environ
        overrides: dict = {
            "enabled": env.get("PAGE_LOAD_TYPE_TELEMETRY", "").strip().lower() in _TRUE_VALUES,
            "hash_url_paths": env.get("PAGE_LOAD_TYPE_TELEMETRY_HASH_PATHS", "").strip().lower() in _TRUE_VALUES,
        }
        path = env.get("PAGE_LOAD_TYPE_TELEMETRY_PATH", "").strip()
        if path:
            overrides["export_path"] = path
        return cls(**overrides)


def log_envelope(event_type: str, attributes: Mapping[str, object], *, timestamp_ns: int | None = None) -> dict:
    """One event as an OTLP LogsData envelope."""
    record = {
        "timeUnixNano": str(time.time_ns() if timestamp_ns is None else timestamp_ns),
        "severityNumber": 9,
        "severityText": "INFO",
        "body": {"stringValue": event_type},
        "attributes": [{"key": key, "value": _any_value(value)} for key, value in attributes.items()],
    }
    return {
        "resourceLogs": [
            {
                "resource": _RESOURCE,
                "scopeLogs": [{"scope": {"name": SCOPE_NAME, "version": "1"}, "logRecords": [record]}],
            }
        ]
    }


def _any_value(value: object) -> dict:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"boolValue": value}
    if isinstance(value, int):
        return {"intValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    return {"stringValue": json.dumps(value, ensure_ascii=False, default=str)}


class TelemetryCollector:
    """Buffer events and write them in batches.  ``emit`` never raises."""

    def __init__(self, config: TelemetryConfig, writer: Writer | None = None) -> None:
        self.config = config
        self.dropped = 0
        self._pending: queue.Queue[dict] = queue.Queue(maxsize=config.max_queue_size)
        self._closed = False

        if writer is not None:
            self._writer: Writer = writer
        elif config.enabled:
            self._writer = FileWriter(config)
        else:
            self._writer = NullWriter()

    def emit(self, event_type: str, payload: Mapping[str, object]) -> None:
        if self._closed or not self.config.enabled:
            return
        try:
            self._pending.put_nowait(log_envelope(event_type, self._clean(payload)))
        except queue.Full:
            self.dropped += 1
            return
        except Exception:
            logger.debug("Telemetry event %s discarded", event_type, exc_info=True)
            return

        if self._pending.qsize() >= self.config.batch_size:
            self.flush()

    def _clean(self, payload: Mapping[str, object]) -> dict:
        cleaned = sanitize_payload(dict(payload))
        for key in URL_FIELDS:
            if isinstance(cleaned.get(key), str):
                cleaned[key] = sanitize_url(cleaned[key], hash_paths=self.config.hash_url_paths)
        return cleaned

    def flush(self) -> int:
        """Write every buffered envelope; returns how many were handed over."""
        batch: list[dict] = []
        while True:
            try:
                batch.append(self._pending.get_nowait())
            except queue.Empty:
                break
        if not batch:
            return 0
        try:
            self._writer.write_sync(batch)
        except Exception:
            logger.debug("Telemetry flush of %d events failed", len(batch), exc_info=True)
            return 0
        return len(batch)

    async def flush_async(self) -> int:
        """``flush`` off the event loop, for callers that batch under load."""
        return await asyncio.to_thread(self.flush)

    def shutdown(self) -> None:
        """Write what is left; later ``emit`` calls are ignored."""
        self._closed = True
        self.flush()
