"""Exports for test fakes."""

from .cache import InMemoryCache
from .filesystem import InMemoryFileSystem
from .geo import (
    FakeAmenityCounter,
    FakeAreaNameResolver,
    FakePlaceGeocoder,
    FakePlaceNameLookup,
    FakePointResolver,
    FakePostcodeLookup,
)
from .http import FakeHttpClient
from .progress import FakeProgressReporter
from .resilience import FakeCircuitBreaker, FakeRateLimiter

__all__ = [
    "FakeAmenityCounter",
    "FakeAreaNameResolver",
    "FakeCircuitBreaker",
    "FakeHttpClient",
    "FakePlaceGeocoder",
    "FakePlaceNameLookup",
    "FakePointResolver",
    "FakePostcodeLookup",
    "FakeProgressReporter",
    "FakeRateLimiter",
    "InMemoryCache",
    "InMemoryFileSystem",
]
