"""
Fetchers for the external resource.

- Simulated fetcher with fixed latency, used by default
- HTTP fetcher for a real upstream API
- Extensible interface for adding new sources
"""

from .base import BaseFetcher
from .simulated import SimulatedFetcher
from .http import HttpFetcher

from ..utils.config import Settings


def create_fetcher(settings: Settings) -> BaseFetcher:
    """Build the fetcher named by ``settings.fetcher``."""
    if settings.fetcher == "http":
        return HttpFetcher(
            url_template=settings.fetch_url_template,
            timeout_seconds=settings.fetch_timeout_seconds or 30.0
        )
    return SimulatedFetcher(
        latency_seconds=settings.fetch_latency_seconds,
        failure_rate=settings.fetch_failure_rate
    )


__all__ = [
    'BaseFetcher',
    'SimulatedFetcher',
    'HttpFetcher',
    'create_fetcher'
]
