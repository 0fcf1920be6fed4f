# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for page_load_type.signals: default providers and fault handling."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from page_load_type import telemetry
from page_load_type.environment import NavigationEntry, PageEnvironment, ResourceEntry, ServerTiming
from page_load_type.signals import (
    SignalProviders,
    browser_cached,
    early_hints_used,
    edge_cache_used,
    edge_cache_status,
    from_sxg_cache,
    prefetched_hint,
    read_signal,
    read_tristate,
    sxg_used,
)
from page_load_type.telemetry import events
from page_load_type.telemetry.collector import TelemetryConfig
from page_load_type.telemetry.writer import ListWriter

SXG_REFERRER = "https://example-com.webpkgcache.com/doc/-/s/example.com/page"


def _nav(**kw) -> NavigationEntry:
    return NavigationEntry(**kw)


# ---------------------------------------------------------------------------
# sxg_used / browser_cached
# ---------------------------------------------------------------------------


class TestSxgUsed:
    @pytest.mark.parametrize("flag,expected", [(True, True), (False, False), (None, False)])
    def test_tristate_marker_folds_unknown(self, flag, expected):
        assert sxg_used(PageEnvironment(is_sxg=flag)) is expected


class TestBrowserCached:
    def test_cache_delivery(self):
        assert browser_cached(PageEnvironment(navigation=_nav(delivery_type="cache"))) is True

    @pytest.mark.parametrize("delivery", ["", "navigational-prefetch", "CACHE"])
    def test_other_delivery_types(self, delivery):
        assert browser_cached(PageEnvironment(navigation=_nav(delivery_type=delivery))) is False

    def test_missing_navigation_entry(self):
        assert browser_cached(PageEnvironment()) is False


# ---------------------------------------------------------------------------
# from_sxg_cache
# ---------------------------------------------------------------------------


class TestFromSxgCache:
    def test_sxg_cache_referrer_on_new_navigation(self):
        env = PageEnvironment(referrer=SXG_REFERRER, navigation=_nav(type="navigate"))
        assert from_sxg_cache(env) is True

    def test_case_insensitive_host(self):
        env = PageEnvironment(referrer="https://EXAMPLE-COM.WebPkgCache.com/doc/", navigation=_nav())
        assert from_sxg_cache(env) is True

    @pytest.mark.parametrize("nav_type", ["reload", "back_forward", "prerender"])
    def test_not_a_new_navigation(self, nav_type):
        env = PageEnvironment(referrer=SXG_REFERRER, navigation=_nav(type=nav_type))
        assert from_sxg_cache(env) is False

    def test_missing_navigation_entry(self):
        assert from_sxg_cache(PageEnvironment(referrer=SXG_REFERRER)) is False

    @pytest.mark.parametrize(
        "referrer",
        [
            "",
            "https://www.google.com/",
            "https://webpkgcache.com/",  # bare domain, no subdomain
            "https://example.webpkgcache.com.evil.test/",
            "not a url",
            "http://[::1",  # unparsable
        ],
    )
    def test_non_matching_referrers(self, referrer):
        env = PageEnvironment(referrer=referrer, navigation=_nav())
        assert from_sxg_cache(env) is False


# ---------------------------------------------------------------------------
# edge_cache_used / early_hints_used / prefetched_hint
# ---------------------------------------------------------------------------


class TestEdgeCacheUsed:
    @pytest.mark.parametrize("status", ["HIT", "STALE", "UPDATING"])
    def test_hit_statuses(self, status):
        env = PageEnvironment(navigation=_nav(server_timing=(ServerTiming("cfCacheStatus", status),)))
        assert edge_cache_used(env) is True

    @pytest.mark.parametrize("status", ["MISS", "EXPIRED", "BYPASS", "DYNAMIC", "hit"])
    def test_miss_statuses(self, status):
        env = PageEnvironment(navigation=_nav(server_timing=(ServerTiming("cfCacheStatus", status),)))
        assert edge_cache_used(env) is False

    def test_no_metric(self):
        env = PageEnvironment(navigation=_nav(server_timing=(ServerTiming("db", "", 12.0),)))
        assert edge_cache_status(env) is None
        assert edge_cache_used(env) is False

    def test_no_navigation(self):
        assert edge_cache_used(PageEnvironment()) is False

    def test_first_metric_wins(self):
        timings = (ServerTiming("cfCacheStatus", "MISS"), ServerTiming("cfCacheStatus", "HIT"))
        assert edge_cache_status(PageEnvironment(navigation=_nav(server_timing=timings))) == "MISS"


class TestEarlyHintsUsed:
    def test_early_hints_initiator(self):
        env = PageEnvironment(
            resources=(ResourceEntry("/app.js", "script"), ResourceEntry("/app.css", "early-hints")),
        )
        assert early_hints_used(env) is True

    def test_no_early_hints(self):
        env = PageEnvironment(resources=(ResourceEntry("/app.js", "script"),))
        assert early_hints_used(env) is False

    def test_no_resources(self):
        assert early_hints_used(PageEnvironment()) is False


class TestPrefetchedHint:
    @pytest.mark.parametrize("value", [True, False, None])
    def test_passthrough(self, value):
        assert prefetched_hint(PageEnvironment(prefetched=value)) is value


# ---------------------------------------------------------------------------
# Provider bundle and fault normalisation
# ---------------------------------------------------------------------------


class TestSignalProviders:
    def test_for_environment_binds_snapshot(self):
        env = PageEnvironment(
            is_sxg=True,
            navigation=_nav(delivery_type="cache", server_timing=(ServerTiming("cfCacheStatus", "HIT"),)),
            resources=(ResourceEntry("/a.css", "early-hints"),),
            prefetched=True,
        )
        providers = SignalProviders.for_environment(env)

        assert providers.sxg_used() is True
        assert providers.browser_cached() is True
        assert providers.from_sxg_cache() is False
        assert providers.edge_cache_used() is True
        assert providers.early_hints_used() is True
        assert providers.prefetched_hint() is True

    def test_static(self):
        providers = SignalProviders.static(browser_cached=True, prefetched_hint=False)
        assert providers.sxg_used() is False
        assert providers.browser_cached() is True
        assert providers.prefetched_hint() is False

    def test_default_hint_is_unknown(self):
        providers = SignalProviders(
            sxg_used=lambda: False,
            browser_cached=lambda: False,
            from_sxg_cache=lambda: False,
            edge_cache_used=lambda: False,
            early_hints_used=lambda: False,
        )
        assert providers.prefetched_hint() is None


class TestReadSignal:
    def test_bool_passes_through(self):
        assert read_signal("x", lambda: True) is True
        assert read_signal("x", lambda: False) is False

    @pytest.mark.parametrize("value", ["false", "yes", 1, 0, None, [], MagicMock()])
    def test_non_bool_becomes_false(self, value, caplog):
        assert read_signal("sxg_used", lambda: value) is False
        assert "sxg_used" in caplog.text

    def test_non_bool_emits_signal_failed(self):
        writer = ListWriter()
        telemetry.configure(TelemetryConfig(enabled=True), writer=writer)
        read_signal("browser_cached", lambda: "false")
        telemetry.shutdown()
        assert writer.event_types() == [events.SIGNAL_FAILED]
        record = writer.events[0]["resourceLogs"][0]["scopeLogs"][0]["logRecords"][0]
        attrs = {a["key"]: a["value"]["stringValue"] for a in record["attributes"]}
        assert attrs == {"signal": "browser_cached", "error_type": "SignalProviderError"}

    def test_exception_becomes_false(self, caplog):
        def boom() -> bool:
            raise ValueError("malformed entry")

        assert read_signal("browser_cached", boom) is False
        assert "browser_cached" in caplog.text

    def test_tristate_keeps_unknown(self):
        assert read_tristate("hint", lambda: None) is None
        assert read_tristate("hint", lambda: True) is True
        assert read_tristate("hint", lambda: False) is False

    def test_tristate_non_bool_becomes_unknown(self):
        assert read_tristate("hint", lambda: 1) is None
        assert read_tristate("hint", lambda: "true") is None

    def test_tristate_exception_becomes_unknown(self):
        def boom() -> bool:
            raise RuntimeError

        assert read_tristate("hint", boom) is None
