"""Helpers that keep secrets and signed URLs out of log lines."""

from __future__ import annotations

import hashlib
from typing import Any
from urllib.parse import urlsplit


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a deterministic non-reversible token for log correlation fields."""
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"

    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"{prefix}-{digest}"


def safe_url_host(url: str | None) -> str:
    """Reduce a (possibly pre-signed) download URL to its host for logging."""
    if not url:
        return "none"
    host = urlsplit(url).hostname
    return host or "invalid"
