# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Immutable classifier configuration with environment overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import ConfigError

DEFAULT_SXG_SCRIPT_PATH = "/sxg/resolve-status.js"
DEFAULT_SXG_EVENT_NAME = "SxgStatusResolved"
DEFAULT_SXG_EVENT_PROPERTY = "subresources"

_TRUE_VALUES = ("1", "true", "yes")
_FALSE_VALUES = ("0", "false", "no")


@dataclass(frozen=True, slots=True)
class SxgStatusConfig:
    """Where the SXG subresource status comes from.

    ``script_path`` identifies the resource whose load eventually dispatches
    ``event_name``; the boolean outcome is read from ``detail[event_property]``.
    """

    script_path: str = DEFAULT_SXG_SCRIPT_PATH
    event_name: str = DEFAULT_SXG_EVENT_NAME
    event_property: str = DEFAULT_SXG_EVENT_PROPERTY

    def __post_init__(self) -> None:
        for name in ("script_path", "event_name", "event_property"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"SxgStatusConfig.{name} must be a non-empty string, got {value!r}")


@dataclass(frozen=True, slots=True)
class ClassifierConfig:
    """Per-classification configuration.

    ``prefetched`` is the caller's prefetch hint: True, False, or None when
    the page cannot tell a prefetch-filled cache from a prior visit.
    """

    prefetched: bool | None = None
    sxg_status: SxgStatusConfig = field(default_factory=SxgStatusConfig)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClassifierConfig:
        """Build a config from ``PAGE_LOAD_TYPE_*`` environment variables.

        Unset or blank variables keep their defaults.
        """
        env = os.environ if environ is None else environ

        script_path = env.get("PAGE_LOAD_TYPE_SXG_SCRIPT_PATH", "").strip() or DEFAULT_SXG_SCRIPT_PATH
        event_name = env.get("PAGE_LOAD_TYPE_SXG_EVENT_NAME", "").strip() or DEFAULT_SXG_EVENT_NAME
        event_property = env.get("PAGE_LOAD_TYPE_SXG_EVENT_PROPERTY", "").strip() or DEFAULT_SXG_EVENT_PROPERTY

        return cls(
            prefetched=parse_tristate(env.get("PAGE_LOAD_TYPE_PREFETCHED", "")),
            sxg_status=SxgStatusConfig(
                script_path=script_path,
                event_name=event_name,
                event_property=event_property,
            ),
        )


def parse_tristate(raw: str | None) -> bool | None:
    """Parse ``1/true/yes``, ``0/false/no`` or blank (unknown).

    Raises ConfigError for anything else.
    """
    value = (raw or "").strip().lower()
    if not value:
        return None
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"Expected one of {_TRUE_VALUES + _FALSE_VALUES} or blank, got {raw!r}")
