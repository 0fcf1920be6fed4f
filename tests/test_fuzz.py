# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Property-based tests using Hypothesis.

The classifier must be total over every signal combination and every
beacon shape, and environment parsing must either succeed or raise
EnvironmentParseError.
"""

from __future__ import annotations

try:
    from hypothesis import HealthCheck, given, settings
    from hypothesis import strategies as st
except ImportError:
    import pytest

    pytest.skip("hypothesis not installed", allow_module_level=True)

import asyncio

from page_load_type import PageLoadType
from page_load_type.classifier import PageLoadClassifier, get_page_load_type
from page_load_type.config import ClassifierConfig
from page_load_type.environment import PageEnvironment
from page_load_type.errors import EnvironmentParseError
from page_load_type.signals import SignalProviders
from tests._helpers import mock_resolver

TRISTATE = st.sampled_from([True, False, None])

JSON_SCALAR = st.one_of(st.none(), st.booleans(), st.integers(), st.floats(allow_nan=False), st.text(max_size=40))

NAV_ENTRY = st.fixed_dictionaries(
    {},
    optional={
        "type": st.sampled_from(["navigate", "reload", "back_forward", "prerender"]),
        "deliveryType": st.sampled_from(["", "cache", "navigational-prefetch"]),
        "serverTiming": st.lists(
            st.fixed_dictionaries(
                {"name": st.sampled_from(["cfCacheStatus", "db", "edge"])},
                optional={"description": st.sampled_from(["HIT", "MISS", "STALE", "UPDATING", "DYNAMIC", ""])},
            ),
            max_size=4,
        ),
    },
)

BEACON = st.fixed_dictionaries(
    {},
    optional={
        "isSXG": TRISTATE,
        "prefetched": TRISTATE,
        "referrer": st.one_of(
            st.just(""),
            st.just("https://example-com.webpkgcache.com/doc/"),
            st.just("https://www.google.com/"),
            st.text(max_size=60),
        ),
        "navigation": st.one_of(st.none(), NAV_ENTRY),
        "resources": st.lists(
            st.fixed_dictionaries(
                {"name": st.text(max_size=20), "initiatorType": st.sampled_from(["script", "link", "early-hints"])}
            ),
            max_size=5,
        ),
    },
)

_fuzz_settings = settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])


@_fuzz_settings
@given(
    sxg=st.booleans(),
    cached=st.booleans(),
    sxg_cache=st.booleans(),
    edge=st.booleans(),
    hints=st.booleans(),
    hint=TRISTATE,
    resolved=st.booleans(),
)
def test_classifier_is_total(sxg, cached, sxg_cache, edge, hints, hint, resolved):
    providers = SignalProviders.static(
        sxg_used=sxg,
        browser_cached=cached,
        from_sxg_cache=sxg_cache,
        edge_cache_used=edge,
        early_hints_used=hints,
    )
    classifier = PageLoadClassifier(
        providers=providers,
        resolver=mock_resolver(resolved),
        config=ClassifierConfig(prefetched=hint),
    )
    result = asyncio.run(classifier.classify())

    assert result in set(PageLoadType)
    assert result.is_sxg == (sxg or sxg_cache)


@_fuzz_settings
@given(beacon=BEACON)
def test_valid_beacons_always_classify(beacon):
    env = PageEnvironment.from_dict(beacon)
    result = asyncio.run(get_page_load_type(resolver=mock_resolver(), environment=env))
    assert isinstance(result, PageLoadType)


@_fuzz_settings
@given(data=st.dictionaries(st.sampled_from(["isSXG", "referrer", "navigation", "resources", "prefetched"]), JSON_SCALAR))
def test_arbitrary_beacons_parse_or_raise(data):
    try:
        PageEnvironment.from_dict(data)
    except EnvironmentParseError:
        pass
