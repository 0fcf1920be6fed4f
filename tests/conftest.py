# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import page_load_type  # noqa: F401
except ImportError:
    raise ImportError("page_load_type is not installed. Run: pip install -e '.[dev]'") from None

import pytest


@pytest.fixture(autouse=True)
def _reset_telemetry():
    """Telemetry is a process singleton; start and end every test without it."""
    from page_load_type import telemetry

    telemetry._reset_for_testing()
    yield
    telemetry._reset_for_testing()
