# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Telemetry event types, TypedDict payloads, and builder functions."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypedDict

if TYPE_CHECKING:
    from .. import SignalSet

# ── Event type constants (OTel naming) ───────────────────────────

PAGE_LOAD_CLASSIFIED = "page_load.classified"
SIGNAL_FAILED = "page_load.signal_failed"
SXG_STATUS_RESOLVED = "sxg_status.resolved"


# ── TypedDict payload definitions ────────────────────────────────


class PageLoadClassifiedPayload(TypedDict, total=False):
    page_type: str
    sxg_used: bool
    browser_cached: bool
    from_sxg_cache: bool
    edge_cache_used: bool
    early_hints_used: bool
    prefetched_hint: bool


class SignalFailedPayload(TypedDict):
    signal: str
    error_type: str


class SxgStatusResolvedPayload(TypedDict):
    script_path: str
    success: bool
    waiters: int


# ── Builders ─────────────────────────────────────────────────────


def page_load_classified(*, page_type: str, signals: SignalSet) -> PageLoadClassifiedPayload:
    """Label plus every signal actually read (unread / unknown ones omitted)."""
    payload = PageLoadClassifiedPayload(page_type=page_type)
    payload.update(signals.as_payload())  # type: ignore[typeddict-item]
    return payload


def signal_failed(*, signal: str, error_type: str) -> SignalFailedPayload:
    return SignalFailedPayload(signal=signal, error_type=error_type)


def sxg_status_resolved(*, script_path: str, success: bool, waiters: int) -> SxgStatusResolvedPayload:
    return SxgStatusResolvedPayload(script_path=script_path, success=success, waiters=waiters)
