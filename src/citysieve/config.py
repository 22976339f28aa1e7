"""Centralised, injectable configuration for CitySieve searches."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Self

from dotenv import load_dotenv

from .config_file import SearchConfigFile
from .infrastructure.cache import DEFAULT_TTL_SECONDS
from .infrastructure.io.http import DEFAULT_USER_AGENT
from .infrastructure.nominatim import DEFAULT_BASE_URL as NOMINATIM_BASE_URL
from .infrastructure.overpass import DEFAULT_ENDPOINTS as OVERPASS_ENDPOINTS
from .infrastructure.postcodes import MAX_BULK_GEOLOCATIONS
from .infrastructure.postcodes import DEFAULT_BASE_URL as POSTCODES_BASE_URL

ENV_PREFIX = "CITYSIEVE_"


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class NonNegativeIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be zero or a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative integer.")


class BatchSizeEnvVarError(ValueError):
    """Raised when a batch size environment variable is outside 1..limit."""

    def __init__(self, env_name: str, limit: int) -> None:
        super().__init__(f"{env_name} must be an integer between 1 and {limit}.")


class PositiveFloatEnvVarError(ValueError):
    """Raised when an environment variable must be a positive number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive number.")


class NonNegativeFloatEnvVarError(ValueError):
    """Raised when an environment variable must be zero or a positive number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative number.")


def _default_overpass_endpoints() -> tuple[str, ...]:
    return OVERPASS_ENDPOINTS


@dataclass(frozen=True)
class SearchConfig:
    """Immutable configuration for a search run and its HTTP collaborators.

    Load from environment with `SearchConfig.from_env()` or construct directly for testing.
    """

    # Search
    radius_km: float = 20.0
    top_n: int = 10
    validation_batch_size: int = 100
    enrichment_batch_size: int = 4

    # Upstream services
    user_agent: str = DEFAULT_USER_AGENT
    postcodes_base_url: str = POSTCODES_BASE_URL
    nominatim_base_url: str = NOMINATIM_BASE_URL
    overpass_endpoints: tuple[str, ...] = field(default_factory=_default_overpass_endpoints)
    http_timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_factor: float = 0.5
    backoff_max_seconds: float = 30.0
    backoff_jitter_seconds: float = 0.1
    circuit_breaker_threshold: int = 5
    circuit_breaker_timeout_seconds: float = 60.0
    postcodes_max_rpm: int = 600
    overpass_max_rpm: int = 30
    nominatim_max_rpm: int = 60  # Nominatim usage policy: one request per second
    nominatim_min_delay_seconds: float = 1.0

    # Caching
    cache_dir: str = ""
    cache_ttl_seconds: float = DEFAULT_TTL_SECONDS

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from ``CITYSIEVE_*`` environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            SearchConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)
        defaults = cls()

        return cls(
            radius_km=_env_positive_float("RADIUS_KM", defaults.radius_km),
            top_n=_env_positive_int("TOP_N", defaults.top_n),
            validation_batch_size=_env_batch_size(
                "VALIDATION_BATCH_SIZE", defaults.validation_batch_size, MAX_BULK_GEOLOCATIONS
            ),
            enrichment_batch_size=_env_positive_int(
                "ENRICHMENT_BATCH_SIZE", defaults.enrichment_batch_size
            ),
            user_agent=_env_text("USER_AGENT", defaults.user_agent),
            postcodes_base_url=_env_text("POSTCODES_BASE_URL", defaults.postcodes_base_url),
            nominatim_base_url=_env_text("NOMINATIM_BASE_URL", defaults.nominatim_base_url),
            overpass_endpoints=_parse_list(os.getenv(f"{ENV_PREFIX}OVERPASS_ENDPOINTS", ""))
            or defaults.overpass_endpoints,
            http_timeout_seconds=_env_positive_float(
                "HTTP_TIMEOUT_SECONDS", defaults.http_timeout_seconds
            ),
            max_retries=_env_non_negative_int("MAX_RETRIES", defaults.max_retries),
            backoff_factor=_env_non_negative_float("BACKOFF_FACTOR", defaults.backoff_factor),
            backoff_max_seconds=_env_non_negative_float(
                "BACKOFF_MAX_SECONDS", defaults.backoff_max_seconds
            ),
            backoff_jitter_seconds=_env_non_negative_float(
                "BACKOFF_JITTER_SECONDS", defaults.backoff_jitter_seconds
            ),
            circuit_breaker_threshold=_env_positive_int(
                "CIRCUIT_BREAKER_THRESHOLD", defaults.circuit_breaker_threshold
            ),
            circuit_breaker_timeout_seconds=_env_positive_float(
                "CIRCUIT_BREAKER_TIMEOUT_SECONDS", defaults.circuit_breaker_timeout_seconds
            ),
            postcodes_max_rpm=_env_positive_int("POSTCODES_MAX_RPM", defaults.postcodes_max_rpm),
            overpass_max_rpm=_env_positive_int("OVERPASS_MAX_RPM", defaults.overpass_max_rpm),
            nominatim_max_rpm=_env_positive_int("NOMINATIM_MAX_RPM", defaults.nominatim_max_rpm),
            nominatim_min_delay_seconds=_env_non_negative_float(
                "NOMINATIM_MIN_DELAY_SECONDS", defaults.nominatim_min_delay_seconds
            ),
            cache_dir=os.getenv(f"{ENV_PREFIX}CACHE_DIR", "").strip(),
            cache_ttl_seconds=_env_positive_float("CACHE_TTL_SECONDS", defaults.cache_ttl_seconds),
        )

    def with_overrides(
        self,
        *,
        radius_km: float | None = None,
        top_n: int | None = None,
        cache_dir: str | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            radius_km=self.radius_km if radius_km is None else radius_km,
            top_n=self.top_n if top_n is None else top_n,
            cache_dir=self.cache_dir if cache_dir is None else cache_dir.strip(),
        )

    def with_file_overrides(self, file_config: SearchConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            radius_km=self.radius_km if file_config.radius_km is None else file_config.radius_km,
            top_n=self.top_n if file_config.top_n is None else file_config.top_n,
            validation_batch_size=self.validation_batch_size
            if file_config.validation_batch_size is None
            else file_config.validation_batch_size,
            enrichment_batch_size=self.enrichment_batch_size
            if file_config.enrichment_batch_size is None
            else file_config.enrichment_batch_size,
            user_agent=self.user_agent
            if file_config.user_agent is None
            else file_config.user_agent,
            postcodes_base_url=self.postcodes_base_url
            if file_config.postcodes_base_url is None
            else file_config.postcodes_base_url,
            nominatim_base_url=self.nominatim_base_url
            if file_config.nominatim_base_url is None
            else file_config.nominatim_base_url,
            overpass_endpoints=self.overpass_endpoints
            if file_config.overpass_endpoints is None
            else file_config.overpass_endpoints,
            http_timeout_seconds=self.http_timeout_seconds
            if file_config.http_timeout_seconds is None
            else file_config.http_timeout_seconds,
            cache_dir=self.cache_dir if file_config.cache_dir is None else file_config.cache_dir,
            cache_ttl_seconds=self.cache_ttl_seconds
            if file_config.cache_ttl_seconds is None
            else file_config.cache_ttl_seconds,
        )


def _parse_list(s: str) -> tuple[str, ...]:
    """Parse comma-separated string into tuple of stripped values."""
    items = [item.strip() for item in s.split(",") if item.strip()]
    return tuple(items)


def _env_text(suffix: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{suffix}", "").strip() or default


def _env_positive_int(suffix: str, default: int) -> int:
    env_name = f"{ENV_PREFIX}{suffix}"
    text = os.getenv(env_name, "").strip()
    if not text:
        return default
    try:
        parsed = int(text)
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _env_batch_size(suffix: str, default: int, limit: int) -> int:
    # postcodes.io rejects bulk reverse lookups above the limit.
    env_name = f"{ENV_PREFIX}{suffix}"
    try:
        parsed = _env_positive_int(suffix, default)
    except PositiveIntegerEnvVarError as exc:
        raise BatchSizeEnvVarError(env_name, limit) from exc
    if parsed > limit:
        raise BatchSizeEnvVarError(env_name, limit)
    return parsed


def _env_non_negative_int(suffix: str, default: int) -> int:
    env_name = f"{ENV_PREFIX}{suffix}"
    text = os.getenv(env_name, "").strip()
    if not text:
        return default
    try:
        parsed = int(text)
    except ValueError as exc:
        raise NonNegativeIntegerEnvVarError(env_name) from exc
    if parsed < 0:
        raise NonNegativeIntegerEnvVarError(env_name)
    return parsed


def _env_positive_float(suffix: str, default: float) -> float:
    env_name = f"{ENV_PREFIX}{suffix}"
    text = os.getenv(env_name, "").strip()
    if not text:
        return default
    try:
        parsed = float(text)
    except ValueError as exc:
        raise PositiveFloatEnvVarError(env_name) from exc
    if not parsed > 0 or parsed == float("inf"):
        raise PositiveFloatEnvVarError(env_name)
    return parsed


def _env_non_negative_float(suffix: str, default: float) -> float:
    env_name = f"{ENV_PREFIX}{suffix}"
    text = os.getenv(env_name, "").strip()
    if not text:
        return default
    try:
        parsed = float(text)
    except ValueError as exc:
        raise NonNegativeFloatEnvVarError(env_name) from exc
    if not parsed >= 0 or parsed == float("inf"):
        raise NonNegativeFloatEnvVarError(env_name)
    return parsed
