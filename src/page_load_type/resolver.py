# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Single-flight resolver for the SXG subresource status signal.

Answers "were the SXG subresources actually prefetched?" by loading the
status script once and waiting for the notification it dispatches.

Per ``script_path`` the state moves exactly once through::

    uninitialized -> loading -> settled(True | False)

- The first ``resolve()`` subscribes one one-shot listener and calls the
  loader.  Concurrent callers join the same pending future.
- The notification settles the future; every waiter, past and future,
  sees the same outcome.  Settled outcomes are never re-resolved.
- No timeout: wrap ``resolve()`` in ``asyncio.wait_for`` to bound the
  wait.  Cancelling one waiter leaves the shared flight running.

NOTE: one resolver instance per event loop.  Not thread-safe.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from . import telemetry
from .config import SxgStatusConfig
from .notifications import NotificationSource, Subscription
from .telemetry import events

logger = logging.getLogger(__name__)

ScriptLoader = Callable[[str], "Awaitable[None] | None"]


class ResolverState(StrEnum):
    """Lifecycle of one resource's status signal."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    SETTLED = "settled"


class StatusResolver(Protocol):
    """What the classifier needs from a resolver."""

    async def resolve(self, config: SxgStatusConfig | None = None) -> bool: ...


@dataclass(slots=True)
class _Flight:
    """Pending resolution for one script path."""

    future: asyncio.Future[bool]
    subscription: Subscription | None = None
    loads: int = 0
    waiters: int = 0
    load_task: asyncio.Task | None = None


class SxgStatusResolver:
    """Coalesced, cached wait for the SXG status notification."""

    def __init__(self, *, loader: ScriptLoader, notifications: NotificationSource) -> None:
        self._loader = loader
        self._notifications = notifications
        self._flights: dict[str, _Flight] = {}
        self._outcomes: dict[str, bool] = {}

    # -- Public API --

    async def resolve(self, config: SxgStatusConfig | None = None) -> bool:
        """Return True when subresources were confirmed prefetched, else False.

        Never raises on its own; may never return if the notification never
        arrives.
        """
        config = config or SxgStatusConfig()
        key = config.script_path

        cached = self._outcomes.get(key)
        if cached is not None:
            logger.debug("SXG status cache hit: %s -> %s", key, cached)
            return cached

        flight = self._flights.get(key)
        if flight is None:
            flight = self._start(config)
            flight.waiters += 1
            self._load(key, flight)
        else:
            flight.waiters += 1
            logger.debug("SXG status join: %s (waiters=%d)", key, flight.waiters)

        return await asyncio.shield(flight.future)

    def state(self, script_path: str) -> ResolverState:
        if script_path in self._outcomes:
            return ResolverState.SETTLED
        if script_path in self._flights:
            return ResolverState.LOADING
        return ResolverState.UNINITIALIZED

    def outcome(self, script_path: str) -> bool | None:
        """Settled outcome, or None while uninitialized/loading."""
        return self._outcomes.get(script_path)

    def load_count(self, script_path: str) -> int:
        flight = self._flights.get(script_path)
        return flight.loads if flight is not None else 0

    # -- Internals --

    def _start(self, config: SxgStatusConfig) -> _Flight:
        key = config.script_path
        flight = _Flight(future=asyncio.get_running_loop().create_future())
        self._flights[key] = flight

        flight.subscription = self._notifications.subscribe(
            config.event_name,
            lambda detail: self._settle(config, detail),
            once=True,
        )
        logger.debug("SXG status loading: %s (event=%s)", key, config.event_name)
        return flight

    def _load(self, key: str, flight: _Flight) -> None:
        flight.loads += 1
        try:
            result = self._loader(key)
        except Exception as exc:
            # Leave the flight loading: the notification may still arrive.
            logger.warning("SXG status loader failed for %s: %s", key, exc)
            return

        if inspect.isawaitable(result):
            flight.load_task = asyncio.ensure_future(result)
            flight.load_task.add_done_callback(lambda task: _log_load_failure(key, task))

    def _settle(self, config: SxgStatusConfig, detail: Mapping[str, Any]) -> None:
        key = config.script_path
        flight = self._flights.get(key)
        if flight is None or flight.future.done():
            return

        value = detail.get(config.event_property) if isinstance(detail, Mapping) else None
        success = bool(value)

        self._outcomes[key] = success
        flight.subscription = None
        flight.future.set_result(success)

        logger.debug("SXG status settled: %s -> %s (waiters=%d)", key, success, flight.waiters)
        telemetry.emit(
            events.SXG_STATUS_RESOLVED,
            events.sxg_status_resolved(script_path=key, success=success, waiters=flight.waiters),
        )


def _log_load_failure(script_path: str, task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("SXG status loader failed for %s: %s", script_path, exc)
