# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Signal providers: synchronous, side-effect-free reads of page state.

Each provider is a zero-argument callable returning bool.  The defaults
read a ``PageEnvironment``; tests substitute constants via
``SignalProviders.static()``.

``read_signal`` is the only place provider faults are handled: an
exception or a non-bool value is logged and normalised to False so
classification always produces a label.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlparse

from . import telemetry
from .environment import PageEnvironment
from .errors import SignalProviderError
from .telemetry import events

logger = logging.getLogger(__name__)

Signal = Callable[[], bool]
TriStateSignal = Callable[[], "bool | None"]

# Google SXG cache distributor hosts, e.g. example-com.webpkgcache.com
SXG_CACHE_HOST_RE = re.compile(r"^.+\.webpkgcache\.com$", re.IGNORECASE)

# cfCacheStatus values that mean the edge answered without origin
EDGE_CACHE_HIT_STATUSES = frozenset({"HIT", "STALE", "UPDATING"})
EDGE_CACHE_TIMING_NAME = "cfCacheStatus"

EARLY_HINTS_INITIATOR = "early-hints"
CACHE_DELIVERY_TYPE = "cache"


# ---------------------------------------------------------------------------
# Default providers over PageEnvironment
# ---------------------------------------------------------------------------


def sxg_used(env: PageEnvironment) -> bool:
    """Was this navigation an SXG document.  An unknown marker counts as no."""
    return bool(env.is_sxg)


def browser_cached(env: PageEnvironment) -> bool:
    """Was the document served from the local HTTP cache."""
    if env.navigation is None:
        return False
    return env.navigation.delivery_type == CACHE_DELIVERY_TYPE


def from_sxg_cache(env: PageEnvironment) -> bool:
    """Did a fresh navigation arrive from an SXG distributor cache referrer."""
    return referrer_host_matches(env, SXG_CACHE_HOST_RE)


def edge_cache_used(env: PageEnvironment) -> bool:
    """Did an edge cache (Cloudflare) serve the document."""
    return edge_cache_status(env) in EDGE_CACHE_HIT_STATUSES


def early_hints_used(env: PageEnvironment) -> bool:
    """Were any subresources preloaded by a 103 Early Hints response."""
    return any(r.initiator_type == EARLY_HINTS_INITIATOR for r in env.resources)


def prefetched_hint(env: PageEnvironment) -> bool | None:
    """The page's own prefetch hint, None when it cannot tell."""
    return env.prefetched


def edge_cache_status(env: PageEnvironment) -> str | None:
    """``cfCacheStatus`` server-timing description, or None."""
    if env.navigation is None:
        return None
    return env.navigation.server_timing_description(EDGE_CACHE_TIMING_NAME)


def referrer_host_matches(env: PageEnvironment, pattern: re.Pattern[str]) -> bool:
    """True when the referrer host matches and this is a new navigation.

    Reloads and back/forward navigations keep the original referrer, so
    they must not count.
    """
    if not env.referrer:
        return False
    is_new_navigation = env.navigation is not None and env.navigation.type == "navigate"
    try:
        hostname = urlparse(env.referrer).hostname
    except ValueError:
        return False
    if not hostname:
        return False
    return bool(pattern.match(hostname)) and is_new_navigation


# ---------------------------------------------------------------------------
# Provider bundle
# ---------------------------------------------------------------------------


def _unknown() -> bool | None:
    return None


@dataclass(frozen=True, slots=True)
class SignalProviders:
    """The capability set the classifier reads from."""

    sxg_used: Signal
    browser_cached: Signal
    from_sxg_cache: Signal
    edge_cache_used: Signal
    early_hints_used: Signal
    prefetched_hint: TriStateSignal = _unknown

    @classmethod
    def for_environment(cls, env: PageEnvironment) -> SignalProviders:
        """Default providers bound to one page environment snapshot."""
        return cls(
            sxg_used=lambda: sxg_used(env),
            browser_cached=lambda: browser_cached(env),
            from_sxg_cache=lambda: from_sxg_cache(env),
            edge_cache_used=lambda: edge_cache_used(env),
            early_hints_used=lambda: early_hints_used(env),
            prefetched_hint=lambda: prefetched_hint(env),
        )

    @classmethod
    def static(
        cls,
        *,
        sxg_used: bool = False,
        browser_cached: bool = False,
        from_sxg_cache: bool = False,
        edge_cache_used: bool = False,
        early_hints_used: bool = False,
        prefetched_hint: bool | None = None,
    ) -> SignalProviders:
        """Providers that return fixed values."""
        return cls(
            sxg_used=lambda: sxg_used,
            browser_cached=lambda: browser_cached,
            from_sxg_cache=lambda: from_sxg_cache,
            edge_cache_used=lambda: edge_cache_used,
            early_hints_used=lambda: early_hints_used,
            prefetched_hint=lambda: prefetched_hint,
        )


# ---------------------------------------------------------------------------
# Fault normalisation
# ---------------------------------------------------------------------------


def read_signal(name: str, provider: Signal) -> bool:
    """Call ``provider``; an exception or a non-bool value becomes False."""
    try:
        value = provider()
        if not isinstance(value, bool):
            raise SignalProviderError(f"expected a bool, got {value!r}", signal=name)
        return value
    except Exception as exc:
        _report_failure(name, exc, "false")
        return False


def read_tristate(name: str, provider: TriStateSignal) -> bool | None:
    """Like ``read_signal`` but keeps None (unknown); faults become unknown."""
    try:
        value = provider()
        if value is not None and not isinstance(value, bool):
            raise SignalProviderError(f"expected a bool or None, got {value!r}", signal=name)
        return value
    except Exception as exc:
        _report_failure(name, exc, "unknown")
        return None


def _report_failure(name: str, exc: Exception, fallback: str) -> None:
    logger.warning("Signal provider %s failed, treating as %s: %s", name, fallback, exc)
    telemetry.emit(
        events.SIGNAL_FAILED,
        events.signal_failed(signal=name, error_type=type(exc).__name__),
    )
