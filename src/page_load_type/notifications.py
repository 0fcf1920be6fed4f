# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""One-shot notification channel used by the SXG status resolver.

The page-side status script announces its result by dispatching a named
notification whose detail is a mapping, e.g.
``{"subresources": True}``.  ``LocalNotificationSource`` is the in-process
implementation; an embedding application can supply anything that
satisfies ``NotificationSource``.

Not a pub/sub system: handlers are one-shot by default and there is no
replay of past notifications.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any]], None]

_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class Subscription:
    """Token returned by ``subscribe``; pass it to ``unsubscribe``."""

    channel: str
    id: int = field(default_factory=lambda: next(_ids))


class NotificationSource(Protocol):
    """Anything the resolver can listen on."""

    def subscribe(self, channel: str, handler: Handler, *, once: bool = True) -> Subscription: ...

    def unsubscribe(self, subscription: Subscription) -> None: ...


@dataclass(slots=True)
class _Listener:
    subscription: Subscription
    handler: Handler
    once: bool


class LocalNotificationSource:
    """In-process notification source.

    ``dispatch`` is synchronous: handlers run before it returns, in
    subscription order.  One-shot handlers are removed before being
    called, so a handler that dispatches again cannot receive twice.

    NOTE: single event loop / single thread only.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[_Listener]] = {}

    def subscribe(self, channel: str, handler: Handler, *, once: bool = True) -> Subscription:
        subscription = Subscription(channel=channel)
        self._listeners.setdefault(channel, []).append(_Listener(subscription, handler, once))
        logger.debug("Subscribed to %s (id=%d once=%s)", channel, subscription.id, once)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        listeners = self._listeners.get(subscription.channel)
        if not listeners:
            return
        remaining = [entry for entry in listeners if entry.subscription != subscription]
        if remaining:
            self._listeners[subscription.channel] = remaining
        else:
            del self._listeners[subscription.channel]

    def dispatch(self, channel: str, detail: Mapping[str, Any] | None = None) -> int:
        """Deliver ``detail`` to every current listener on ``channel``.

        Returns the number of handlers invoked.  A failing handler is logged
        and does not stop delivery to the rest.
        """
        listeners = list(self._listeners.get(channel, ()))
        for entry in listeners:
            if entry.once:
                self.unsubscribe(entry.subscription)
        payload: Mapping[str, Any] = detail if detail is not None else {}
        for entry in listeners:
            try:
                entry.handler(payload)
            except Exception:
                logger.exception("Notification handler for %s raised", channel)
        logger.debug("Dispatched %s to %d listener(s)", channel, len(listeners))
        return len(listeners)

    def listener_count(self, channel: str) -> int:
        return len(self._listeners.get(channel, ()))
