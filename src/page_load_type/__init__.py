# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page load type: how a document reached the client, for analytics.

One label per page view, chosen from a closed set:
- sxg_*: the document arrived as (or fell back from) a Signed Exchange
- document_* / browser_cache: a plain navigation (prefetch, cache, edge, origin)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

# Label emitted by older bundles for the ambiguous browser-cache case.
LEGACY_PREFETCH_OR_CACHE_LABEL = "document_prefetch/browser_cache"


class PageLoadType(StrEnum):
    """Closed set of page-load classifications (exact telemetry strings)."""

    SXG_COMPLETE_PREFETCH = "sxg_complete_prefetch"
    SXG_DOCUMENT_PREFETCH = "sxg_document_prefetch"
    SXG_DOCUMENT_ON_DEMAND = "sxg_document_on_demand"
    SXG_FALLBACK_ON_DEMAND_EDGE = "sxg_fallback_on_demand_edge"
    SXG_FALLBACK_ON_DEMAND_HINTS = "sxg_fallback_on_demand_hints"
    SXG_FALLBACK_ON_DEMAND_ORIGIN = "sxg_fallback_on_demand_origin"
    DOCUMENT_PREFETCH_OR_BROWSER_CACHE = "document_prefetch_or_browser_cache"
    DOCUMENT_PREFETCH = "document_prefetch"
    BROWSER_CACHE = "browser_cache"
    DOCUMENT_ON_DEMAND_EDGE = "document_on_demand_edge"
    DOCUMENT_ON_DEMAND_HINTS = "document_on_demand_hints"
    DOCUMENT_ON_DEMAND_ORIGIN = "document_on_demand_origin"

    @classmethod
    def parse(cls, label: str) -> PageLoadType:
        """Parse a telemetry label, accepting the legacy slash-separated form.

        Raises ValueError for anything outside the closed set.
        """
        if label == LEGACY_PREFETCH_OR_CACHE_LABEL:
            return cls.DOCUMENT_PREFETCH_OR_BROWSER_CACHE
        return cls(label)

    @property
    def is_sxg(self) -> bool:
        return self.value.startswith("sxg_")


@dataclass(frozen=True, slots=True)
class SignalSet:
    """Signals read during one classification.

    ``None`` on a boolean signal means it was not read on the branch taken.
    ``prefetched_hint`` is tri-state: True, False, or None (unknown).
    """

    sxg_used: bool | None = None
    browser_cached: bool | None = None
    from_sxg_cache: bool | None = None
    edge_cache_used: bool | None = None
    early_hints_used: bool | None = None
    prefetched_hint: bool | None = None

    def as_payload(self) -> dict[str, object]:
        """Flat dict of the signals that were read (unknown ones omitted)."""
        return {
            name: getattr(self, name)
            for name in (
                "sxg_used",
                "browser_cached",
                "from_sxg_cache",
                "edge_cache_used",
                "early_hints_used",
                "prefetched_hint",
            )
            if getattr(self, name) is not None
        }


@dataclass(frozen=True, slots=True)
class Classification:
    """Result of one classification: the label plus the signals that chose it."""

    page_type: PageLoadType
    signals: SignalSet

    def __str__(self) -> str:
        return self.page_type.value
