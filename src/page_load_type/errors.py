# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""page_load_type exception hierarchy.

All package errors inherit from PageLoadTypeError.  Classification itself
never raises: provider faults are normalised to False inside the classifier,
so only configuration and parsing errors reach callers.
"""

from __future__ import annotations


class PageLoadTypeError(Exception):
    """Base exception for all page_load_type errors."""


class ConfigError(PageLoadTypeError):
    """Invalid classifier or resolver configuration."""


class SignalProviderError(PageLoadTypeError):
    """A signal provider received malformed platform data."""

    def __init__(self, message: str, *, signal: str = "") -> None:
        super().__init__(message)
        self.signal = signal


class EnvironmentParseError(PageLoadTypeError):
    """A page environment beacon could not be parsed."""
