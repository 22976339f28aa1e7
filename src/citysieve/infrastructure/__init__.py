"""Concrete infrastructure implementations and shared helpers."""

from .cache import DiskCache, TimedCache
from .io.filesystem import LocalFileSystem
from .io.http import CachedHttpClient, build_http_client, build_session, parse_retry_after
from .nominatim import NominatimClient
from .overpass import OverpassAmenityCounter
from .postcodes import PostcodesIoClient
from .resilience import CircuitBreaker, RateLimiter, RetryPolicy

__all__ = [
    "CachedHttpClient",
    "CircuitBreaker",
    "DiskCache",
    "LocalFileSystem",
    "NominatimClient",
    "OverpassAmenityCounter",
    "PostcodesIoClient",
    "RateLimiter",
    "RetryPolicy",
    "TimedCache",
    "build_http_client",
    "build_session",
    "parse_retry_after",
]
