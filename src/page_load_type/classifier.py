# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page load classifier: a first-match decision tree over delivery signals.

    sxg_used
    ├─ browser_cached ── resolver ok?  sxg_complete_prefetch | sxg_document_prefetch
    └─ else ───────────────────────── sxg_document_on_demand
    from_sxg_cache ─── edge | hints | origin  → sxg_fallback_on_demand_*
    browser_cached ─── hint unknown | true | false
                       → document_prefetch_or_browser_cache | document_prefetch | browser_cache
    else ───────────── edge | hints | origin  → document_on_demand_*

Providers are read lazily, only on the branch taken, with no ``await``
between reads so one call sees a consistent snapshot.  The only
suspension point is the resolver on the SXG + browser-cache branch.
``classify()`` is total: provider faults and resolver errors never escape.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from . import Classification, PageLoadType, SignalSet, telemetry
from .config import ClassifierConfig, SxgStatusConfig
from .environment import PageEnvironment
from .resolver import StatusResolver
from .signals import SignalProviders, read_signal, read_tristate
from .telemetry import events

logger = logging.getLogger(__name__)

# (edge, hints, origin) label triples for the two on-demand subtrees
_SXG_FALLBACK = (
    PageLoadType.SXG_FALLBACK_ON_DEMAND_EDGE,
    PageLoadType.SXG_FALLBACK_ON_DEMAND_HINTS,
    PageLoadType.SXG_FALLBACK_ON_DEMAND_ORIGIN,
)
_DOCUMENT_ON_DEMAND = (
    PageLoadType.DOCUMENT_ON_DEMAND_EDGE,
    PageLoadType.DOCUMENT_ON_DEMAND_HINTS,
    PageLoadType.DOCUMENT_ON_DEMAND_ORIGIN,
)


class PageLoadClassifier:
    """Classify one page view.  Stateless apart from the shared resolver."""

    def __init__(
        self,
        *,
        providers: SignalProviders,
        resolver: StatusResolver,
        config: ClassifierConfig | None = None,
    ) -> None:
        self._providers = providers
        self._resolver = resolver
        self._config = config or ClassifierConfig()

    @property
    def config(self) -> ClassifierConfig:
        return self._config

    async def classify(self) -> PageLoadType:
        """Return exactly one label.  Never raises."""
        return (await self.classify_detailed()).page_type

    async def classify_detailed(self) -> Classification:
        """Like ``classify`` but also returns the signals that were read."""
        seen: dict[str, bool | None] = {}

        def read(name: str) -> bool:
            value = read_signal(name, getattr(self._providers, name))
            seen[name] = value
            return value

        if read("sxg_used"):
            if read("browser_cached"):
                page_type = await self._sxg_prefetch_type()
            else:
                page_type = PageLoadType.SXG_DOCUMENT_ON_DEMAND
        elif read("from_sxg_cache"):
            page_type = _on_demand_type(read, _SXG_FALLBACK)
        elif read("browser_cached"):
            hint = self._prefetched_hint()
            seen["prefetched_hint"] = hint
            if hint is None:
                page_type = PageLoadType.DOCUMENT_PREFETCH_OR_BROWSER_CACHE
            elif hint:
                page_type = PageLoadType.DOCUMENT_PREFETCH
            else:
                page_type = PageLoadType.BROWSER_CACHE
        else:
            page_type = _on_demand_type(read, _DOCUMENT_ON_DEMAND)

        result = Classification(page_type=page_type, signals=SignalSet(**seen))
        logger.debug("Page load classified: %s signals=%s", page_type.value, result.signals.as_payload())
        telemetry.emit(
            events.PAGE_LOAD_CLASSIFIED,
            events.page_load_classified(page_type=page_type.value, signals=result.signals),
        )
        return result

    async def _sxg_prefetch_type(self) -> PageLoadType:
        try:
            complete = await self._resolver.resolve(self._config.sxg_status)
        except Exception as exc:
            logger.warning("SXG status resolution failed, assuming document-only prefetch: %s", exc)
            complete = False
        return PageLoadType.SXG_COMPLETE_PREFETCH if complete else PageLoadType.SXG_DOCUMENT_PREFETCH

    def _prefetched_hint(self) -> bool | None:
        if self._config.prefetched is not None:
            return self._config.prefetched
        return read_tristate("prefetched_hint", self._providers.prefetched_hint)


def _on_demand_type(
    read: Callable[[str], bool],
    labels: tuple[PageLoadType, PageLoadType, PageLoadType],
) -> PageLoadType:
    edge, hints, origin = labels
    if read("edge_cache_used"):
        return edge
    if read("early_hints_used"):
        return hints
    return origin


async def get_page_load_type(
    *,
    resolver: StatusResolver,
    prefetched: bool | None = None,
    sxg_status_config: SxgStatusConfig | None = None,
    providers: SignalProviders | None = None,
    environment: PageEnvironment | None = None,
) -> PageLoadType:
    """Classify one page view from keyword dependencies.

    ``providers`` wins over ``environment``; with neither, an empty
    environment is used (every signal false).
    """
    if providers is None:
        providers = SignalProviders.for_environment(environment or PageEnvironment())
    config = ClassifierConfig(
        prefetched=prefetched,
        sxg_status=sxg_status_config or SxgStatusConfig(),
    )
    classifier = PageLoadClassifier(providers=providers, resolver=resolver, config=config)
    return await classifier.classify()
