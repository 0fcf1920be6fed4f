# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Telemetry writers: FileWriter (daily JSONL + size rotation), NullWriter, ListWriter."""

from __future__ import annotations

import json
import logging
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_FILE_GLOB = "page-loads-*.jsonl"


class Writer(Protocol):
    """Writer protocol for telemetry output."""

    def write_sync(self, batch: list[dict]) -> None: ...


class FileWriter:
    """Append OTLP envelopes as JSONL, one file per UTC day.

    File naming: page-loads-YYYY-MM-DD.jsonl, then -1, -2, ... once a file
    reaches ``max_file_size_mb``.  Files older than ``max_retention_days``
    are removed after each write.
    """

    def __init__(self, config: object) -> None:
        # Duck-typed to avoid importing TelemetryConfig
        self._export_path = Path(getattr(config, "export_path", ""))
        self._max_file_size = getattr(config, "max_file_size_mb", 50) * 1024 * 1024
        self._max_retention_days = getattr(config, "max_retention_days", 7)

    def write_sync(self, batch: list[dict]) -> None:
        if not batch:
            return
        try:
            self._export_path.mkdir(parents=True, exist_ok=True)
            target = self.current_file(datetime.now(UTC).strftime("%Y-%m-%d"))
            with open(target, "a", encoding="utf-8") as f:
                for envelope in batch:
                    f.write(json.dumps(envelope, ensure_ascii=False, separators=(",", ":")))
                    f.write("\n")
        except OSError as exc:
            logger.debug("Telemetry write failed: %s", exc)
            return

        self._enforce_retention()

    def current_file(self, date: str) -> Path:
        """First file for ``date`` still under the size limit."""
        seq = 0
        while True:
            suffix = f"-{seq}" if seq else ""
            path = self._export_path / f"page-loads-{date}{suffix}.jsonl"
            if not path.exists() or path.stat().st_size < self._max_file_size:
                return path
            seq += 1

    def _enforce_retention(self) -> None:
        cutoff = time.time() - self._max_retention_days * 86400
        for path in self._export_path.glob(_FILE_GLOB):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
            except OSError:
                continue


class NullWriter:
    """No-op writer for disabled telemetry."""

    def write_sync(self, batch: list[dict]) -> None:
        pass


class ListWriter:
    """In-memory writer for tests."""

    def __init__(self) -> None:
        self.events: list[dict] = []

    def write_sync(self, batch: list[dict]) -> None:
        self.events.extend(batch)

    def event_types(self) -> list[str]:
        """Body strings of every captured logRecord, in order."""
        return [
            record["body"]["stringValue"]
            for envelope in self.events
            for rl in envelope["resourceLogs"]
            for sl in rl["scopeLogs"]
            for record in sl["logRecords"]
        ]
