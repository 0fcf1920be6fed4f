# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Privacy utilities for telemetry data sanitization."""

from __future__ import annotations

import hashlib
from urllib.parse import urlparse, urlunparse

# Raw page-state fields that must never leave the process
_BLOCKED_FIELDS = frozenset(
    {
        "environment",
        "navigation",
        "resources",
        "server_timing",
        "detail",
        "referrer",
        "cookies",
        "headers",
    }
)

# Fields that carry a URL or path and are sanitized instead of dropped
URL_FIELDS = ("script_path", "document_url")


def sanitize_url(url: str, *, hash_paths: bool = False) -> str:
    """Remove query/fragment from a URL or path, optionally hash path segments.

    Works on absolute URLs and bare paths (``/sxg/resolve-status.js?v=3``).
    Host is preserved for analytics.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return ""

    path = parsed.path
    if hash_paths and path:
        path = "/".join(_hash_segment(seg) if seg else seg for seg in path.split("/"))

    return urlunparse((parsed.scheme, parsed.netloc, path, "", "", ""))


def _hash_segment(segment: str) -> str:
    return hashlib.sha256(segment.encode("utf-8")).hexdigest()[:4]


def sanitize_payload(payload: dict) -> dict:
    """Drop blocked fields (top level and one level nested).

    Returns a new dict.
    """
    cleaned: dict = {}
    for key, value in payload.items():
        if key in _BLOCKED_FIELDS:
            continue
        if isinstance(value, dict):
            cleaned[key] = {k: v for k, v in value.items() if k not in _BLOCKED_FIELDS}
        else:
            cleaned[key] = value
    return cleaned
