"""Error taxonomy for the review pipeline."""

from __future__ import annotations

from typing import Optional


class MotoPulseError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(MotoPulseError):
    """Required settings (e.g. upstream credentials) are missing."""


class UpstreamError(MotoPulseError):
    def __init__(self, message: str, http_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.http_status = http_status


class UpstreamAuthError(UpstreamError):
    """The token exchange failed. Aborts the whole refresh."""


class UpstreamFetchError(UpstreamError):
    """A single channel request failed. The channel is skipped."""


class CacheReadError(MotoPulseError):
    """Reading cached reviews failed. Treated as a cache miss."""


class CacheWriteError(MotoPulseError):
    """Writing reviews to the cache failed. Logged, never surfaced."""
