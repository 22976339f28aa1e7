"""HTTP client implementation shared by the upstream adapters.

Usage example:
    import requests

    from citysieve.infrastructure.cache import TimedCache
    from citysieve.infrastructure.io.http import CachedHttpClient
    from citysieve.infrastructure.resilience import CircuitBreaker, RateLimiter

    client = CachedHttpClient(
        session=requests.Session(),
        cache=TimedCache(),
        rate_limiter=RateLimiter(max_rpm=60, min_delay_seconds=1.0),
        circuit_breaker=CircuitBreaker(),
        service="postcodes.io",
    )
    payload = client.get_json("https://api.postcodes.io/postcodes?lon=-0.1278&lat=51.5074")
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import override

import requests

from ...exceptions import RateLimitError, UpstreamResponseError
from ...observability import get_logger
from ...protocols import Cache, CircuitBreaker, HttpClient, RateLimiter, RetryPolicy
from ..resilience import CircuitBreaker as CircuitBreakerImpl
from ..resilience import RateLimiter as RateLimiterImpl
from ..resilience import RetryPolicy as RetryPolicyImpl

logger = get_logger("citysieve.infrastructure.http")

DEFAULT_USER_AGENT = "CitySieve/1.0"


def build_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    """Create a session that identifies itself, as Nominatim and Overpass require."""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
    return session


def parse_retry_after(headers: Mapping[str, str] | None) -> int | None:
    """Parse Retry-After header into seconds, if available."""
    if not headers:
        return None
    value = headers.get("Retry-After")
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        dt = parsedate_to_datetime(value)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        delta = (dt - datetime.now(UTC)).total_seconds()
        return max(0, int(delta))
    except (AttributeError, OverflowError, TypeError, ValueError):
        return None


def _response_details(response: requests.Response) -> str:
    """Return a compact status/body summary for error reporting."""
    try:
        body = response.text
    except (UnicodeDecodeError, ValueError, requests.RequestException):
        body = "<unreadable>"
    if not isinstance(body, str):
        body = "<unreadable>"
    body = " ".join(body.split())
    if len(body) > 300:
        body = body[:300] + "..."
    return f"status={response.status_code}, body={body}"


class CachedHttpClient(HttpClient):
    """HTTP client with caching, rate limiting, retries and a circuit breaker.

    Every request follows the same path:
    - a cache hit returns immediately without touching the network
    - the circuit breaker is checked, then the rate limiter waits
    - timeouts, connection errors and retryable statuses back off and retry
    - a 429 that outlives its retries raises RateLimitError
    - the body must be JSON or UpstreamResponseError is raised
    - successful payloads are cached under the caller's key
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        cache: Cache,
        rate_limiter: RateLimiter | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout_seconds: float = 15.0,
        service: str = "upstream",
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.cache = cache
        self.rate_limiter = rate_limiter or RateLimiterImpl()
        self.circuit_breaker = circuit_breaker or CircuitBreakerImpl()
        self.retry_policy = retry_policy or RetryPolicyImpl()
        self.timeout_seconds = timeout_seconds
        self.service = service
        self._sleep = sleep

    @override
    def get_json(self, url: str, cache_key: str | None = None) -> object:
        return self._fetch(
            lambda: self.session.get(url, timeout=self.timeout_seconds), cache_key
        )

    @override
    def post_json(
        self, url: str, payload: Mapping[str, object], cache_key: str | None = None
    ) -> object:
        body = dict(payload)
        return self._fetch(
            lambda: self.session.post(url, json=body, timeout=self.timeout_seconds), cache_key
        )

    @override
    def post_form(
        self, url: str, form: Mapping[str, str], cache_key: str | None = None
    ) -> object:
        data = dict(form)
        return self._fetch(
            lambda: self.session.post(url, data=data, timeout=self.timeout_seconds), cache_key
        )

    def _fetch(
        self, send: Callable[[], requests.Response], cache_key: str | None
    ) -> object:
        """Run one logical request through cache, breaker, limiter and retries.

        Raises:
            CircuitBreakerOpen: If too many consecutive failures
            RateLimitError: If rate limit exceeded and backoff fails
            UpstreamResponseError: If the body is not JSON
            requests.HTTPError: For other HTTP errors
        """
        if cache_key:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        attempt = 0
        while True:
            self.circuit_breaker.check()
            self.rate_limiter.wait_if_needed()

            try:
                r = send()
            except self.retry_policy.retry_exceptions:
                if attempt < self.retry_policy.max_retries:
                    self._sleep(self.retry_policy.compute_backoff(attempt))
                    attempt += 1
                    continue
                self.circuit_breaker.record_failure()
                raise
            except requests.RequestException:
                self.circuit_breaker.record_failure()
                raise

            if r.status_code in self.retry_policy.retry_statuses:
                retry_after = parse_retry_after(getattr(r, "headers", None))
                if attempt < self.retry_policy.max_retries:
                    self._sleep(self.retry_policy.compute_backoff(attempt, retry_after))
                    attempt += 1
                    continue
                self.circuit_breaker.record_failure()
                if r.status_code == 429:
                    logger.warning(
                        "%s rate limit response: %s", self.service, _response_details(r)
                    )
                    raise RateLimitError(retry_after or 60)
                r.raise_for_status()

            try:
                r.raise_for_status()
            except requests.HTTPError:
                self.circuit_breaker.record_failure()
                raise

            try:
                data: object = r.json()
            except ValueError as exc:
                self.circuit_breaker.record_failure()
                raise UpstreamResponseError(
                    self.service, f"expected JSON ({_response_details(r)})"
                ) from exc

            self.circuit_breaker.record_success()
            if cache_key:
                self.cache.set(cache_key, data)
            return data


def build_http_client(
    *,
    service: str,
    cache: Cache,
    user_agent: str,
    max_rpm: int,
    min_delay_seconds: float,
    circuit_breaker_threshold: int,
    circuit_breaker_timeout_seconds: float,
    max_retries: int,
    backoff_factor: float,
    max_backoff_seconds: float,
    jitter_seconds: float,
    timeout_seconds: float,
) -> CachedHttpClient:
    return CachedHttpClient(
        session=build_session(user_agent),
        cache=cache,
        rate_limiter=RateLimiterImpl(max_rpm=max_rpm, min_delay_seconds=min_delay_seconds),
        circuit_breaker=CircuitBreakerImpl(
            threshold=circuit_breaker_threshold,
            recovery_timeout_seconds=circuit_breaker_timeout_seconds,
        ),
        retry_policy=RetryPolicyImpl(
            max_retries=max_retries,
            backoff_factor=backoff_factor,
            max_backoff_seconds=max_backoff_seconds,
            jitter_seconds=jitter_seconds,
        ),
        timeout_seconds=timeout_seconds,
        service=service,
    )
