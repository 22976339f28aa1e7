"""Protocol definitions for dependency injection.

These protocols define the abstract collaborators the search pipeline depends
on, enabling isolated unit testing with fake implementations. Domain code only
ever sees ``PointResolver``, ``AmenityCounter`` and friends; the concrete HTTP
adapters live in ``citysieve.infrastructure``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import pandas as pd

    from .domain.area_names import PlaceName, PostcodeDistrict
    from .domain.geodesy import GeoLocation, GeoPoint


@runtime_checkable
class PointResolver(Protocol):
    """Decides whether points fall inside inhabited (postcoded) areas."""

    def resolve_batch(self, points: Sequence[GeoPoint]) -> list[bool]:
        """Return one flag per point, in input order.

        Raises:
            Any exception on transport failure. Callers treat a failed batch
            as all-valid.
        """
        ...


@runtime_checkable
class AmenityCounter(Protocol):
    """Counts categorised points of interest around a point."""

    def count(self, point: GeoPoint, radius_m: int) -> dict[str, int]:
        """Return integer counts keyed by amenity category."""
        ...


@runtime_checkable
class AreaNameResolver(Protocol):
    """Turns a point into a human-readable neighbourhood name."""

    def reverse_geocode(self, point: GeoPoint) -> str | None:
        """Return a display name, or None when nothing sensible is known."""
        ...


@runtime_checkable
class PlaceNameLookup(Protocol):
    """Reverse geocoder that also reports which address level matched."""

    def reverse_lookup(self, point: GeoPoint) -> PlaceName | None:
        """Return the name and its address type (suburb, town, city...)."""
        ...


@runtime_checkable
class PostcodeLookup(Protocol):
    """Finds the nearest postcode district for a point."""

    def postcode_district(self, point: GeoPoint) -> PostcodeDistrict | None:
        """Return the outcode and place name, or None when unresolved."""
        ...


@runtime_checkable
class PlaceGeocoder(Protocol):
    """Forward geocoder for free-text UK place names."""

    def geocode(self, query: str) -> GeoLocation | None:
        """Return the best match for ``query`` or None."""
        ...


@runtime_checkable
class HttpClient(Protocol):
    """Abstract HTTP client for JSON APIs."""

    def get_json(self, url: str, cache_key: str | None = None) -> object:
        """Fetch JSON from URL, optionally using cache.

        Args:
            url: The URL to fetch (query string included).
            cache_key: Optional cache key. If provided and cached, return cached value.

        Returns:
            Parsed JSON document.
        """
        ...

    def post_json(
        self, url: str, payload: Mapping[str, object], cache_key: str | None = None
    ) -> object:
        """POST a JSON body and return the parsed JSON response."""
        ...

    def post_form(
        self, url: str, form: Mapping[str, str], cache_key: str | None = None
    ) -> object:
        """POST a url-encoded form and return the parsed JSON response."""
        ...


@runtime_checkable
class Cache(Protocol):
    """Abstract cache for storing/retrieving JSON-compatible values."""

    def get(self, key: str) -> object | None:
        """Retrieve a live cached value by key, or None if absent or expired."""
        ...

    def set(self, key: str, value: object) -> None:
        """Store value in cache with given key."""
        ...

    def has(self, key: str) -> bool:
        """Check if a live (unexpired) entry exists for key."""
        ...


@runtime_checkable
class FileSystem(Protocol):
    """Abstract filesystem for reading inputs and writing search artefacts."""

    def read_text(self, path: Path) -> str:
        """Read text file."""
        ...

    def write_text(self, content: str, path: Path) -> None:
        """Write text file."""
        ...

    def write_json(self, data: Mapping[str, object], path: Path) -> None:
        """Write JSON file."""
        ...

    def write_csv(self, df: pd.DataFrame, path: Path) -> None:
        """Write DataFrame to CSV file."""
        ...

    def exists(self, path: Path) -> bool:
        """Check if path exists."""
        ...

    def mkdir(self, path: Path, parents: bool = True) -> None:
        """Create directory."""
        ...


@runtime_checkable
class RateLimiter(Protocol):
    """Abstract rate limiter for outbound requests."""

    def wait_if_needed(self) -> None:
        """Block until a request is allowed."""
        ...


@runtime_checkable
class CircuitBreaker(Protocol):
    """Abstract circuit breaker for outbound requests."""

    def check(self) -> None:
        """Raise if the circuit is open."""
        ...

    def record_success(self) -> None:
        """Record a successful request."""
        ...

    def record_failure(self) -> None:
        """Record a failed request."""
        ...


@runtime_checkable
class RetryPolicy(Protocol):
    """Abstract retry policy for transient failures."""

    max_retries: int
    retry_statuses: tuple[int, ...]
    retry_exceptions: tuple[type[Exception], ...]

    def compute_backoff(self, attempt: int, retry_after: int | None = None) -> float:
        """Return a delay for the next retry attempt."""
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """CLI-owned progress reporting interface."""

    def start(self, label: str, total: int | None) -> None:
        """Start a progress session."""
        ...

    def advance(self, count: int) -> None:
        """Advance progress by count."""
        ...

    def finish(self) -> None:
        """Finish a progress session."""
        ...
