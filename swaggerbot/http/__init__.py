"""Outbound HTTP with retry and backoff."""

from __future__ import annotations

from .client import RetryingHTTPClient
from .errors import ERROR_BODY_PREVIEW_LIMIT, FetchError, HttpError, truncate_body

__all__ = [
    "ERROR_BODY_PREVIEW_LIMIT",
    "FetchError",
    "HttpError",
    "RetryingHTTPClient",
    "truncate_body",
]
