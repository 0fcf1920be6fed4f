# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page environment snapshot: the ambient state signal providers read.

A browser beacon (or a headless harness) reports the navigation timing
entry, resource timing entries, ``document.referrer`` and the SXG flag.
``PageEnvironment.from_dict`` accepts the camelCase shape the Performance
Timeline API produces::

    {
        "isSXG": false,
        "referrer": "https://example-com.webpkgcache.com/doc/-/s/example.com/",
        "prefetched": null,
        "navigation": {
            "type": "navigate",
            "deliveryType": "cache",
            "serverTiming": [{"name": "cfCacheStatus", "description": "HIT"}],
        },
        "resources": [{"name": "https://example.com/app.css", "initiatorType": "early-hints"}],
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import EnvironmentParseError


@dataclass(frozen=True, slots=True)
class ServerTiming:
    """One ``Server-Timing`` metric attached to the navigation response."""

    name: str
    description: str = ""
    duration: float = 0.0


@dataclass(frozen=True, slots=True)
class NavigationEntry:
    """Subset of PerformanceNavigationTiming used for classification."""

    type: str = "navigate"  # navigate, reload, back_forward, prerender
    delivery_type: str = ""  # "cache", "navigational-prefetch" or ""
    server_timing: tuple[ServerTiming, ...] = ()

    def server_timing_description(self, name: str) -> str | None:
        """Description of the first server-timing metric called ``name``."""
        return next((m.description for m in self.server_timing if m.name == name), None)


@dataclass(frozen=True, slots=True)
class ResourceEntry:
    """Subset of PerformanceResourceTiming."""

    name: str
    initiator_type: str = ""


@dataclass(frozen=True, slots=True)
class PageEnvironment:
    """Everything the default signal providers look at for one page view.

    ``is_sxg`` is tri-state: the page-side marker check reports None when the
    document never ran its SXG marker script.
    """

    is_sxg: bool | None = False
    referrer: str = ""
    navigation: NavigationEntry | None = None
    resources: tuple[ResourceEntry, ...] = field(default_factory=tuple)
    prefetched: bool | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PageEnvironment:
        """Parse a beacon payload.  Raises EnvironmentParseError on bad shapes."""
        if not isinstance(data, Mapping):
            raise EnvironmentParseError(f"environment must be a mapping, got {type(data).__name__}")

        nav_raw = data.get("navigation")
        navigation = _parse_navigation(nav_raw) if nav_raw is not None else None

        resources_raw = data.get("resources") or []
        if not isinstance(resources_raw, (list, tuple)):
            raise EnvironmentParseError("resources must be a list")
        resources = tuple(_parse_resource(r) for r in resources_raw)

        referrer = data.get("referrer") or ""
        if not isinstance(referrer, str):
            raise EnvironmentParseError("referrer must be a string")

        return cls(
            is_sxg=_optional_bool(data.get("isSXG"), "isSXG"),
            referrer=referrer,
            navigation=navigation,
            resources=resources,
            prefetched=_optional_bool(data.get("prefetched"), "prefetched"),
        )


def _optional_bool(value: Any, key: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise EnvironmentParseError(f"{key} must be a boolean or null, got {value!r}")


def _parse_navigation(raw: Any) -> NavigationEntry:
    if not isinstance(raw, Mapping):
        raise EnvironmentParseError("navigation must be a mapping")
    timings_raw = raw.get("serverTiming") or []
    if not isinstance(timings_raw, (list, tuple)):
        raise EnvironmentParseError("navigation.serverTiming must be a list")
    timings = []
    for metric in timings_raw:
        if not isinstance(metric, Mapping) or not isinstance(metric.get("name"), str):
            raise EnvironmentParseError(f"malformed server timing entry: {metric!r}")
        try:
            duration = float(metric.get("duration") or 0.0)
        except (TypeError, ValueError):
            raise EnvironmentParseError(f"malformed server timing duration: {metric!r}") from None
        description = metric.get("description")
        if description is None:
            description = ""
        if not isinstance(description, str):
            raise EnvironmentParseError(f"malformed server timing description: {metric!r}")
        timings.append(
            ServerTiming(
                name=metric["name"],
                description=description,
                duration=duration,
            )
        )
    return NavigationEntry(
        type=str(raw.get("type") or "navigate"),
        delivery_type=str(raw.get("deliveryType") or ""),
        server_timing=tuple(timings),
    )


def _parse_resource(raw: Any) -> ResourceEntry:
    if not isinstance(raw, Mapping):
        raise EnvironmentParseError(f"malformed resource entry: {raw!r}")
    return ResourceEntry(
        name=str(raw.get("name") or ""),
        initiator_type=str(raw.get("initiatorType") or ""),
    )
