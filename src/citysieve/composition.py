"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

from pathlib import Path

from .cli import CliDependencies, create_app
from .cli_progress import CliProgressReporter
from .config import SearchConfig
from .infrastructure import (
    CachedHttpClient,
    DiskCache,
    LocalFileSystem,
    NominatimClient,
    OverpassAmenityCounter,
    PostcodesIoClient,
    TimedCache,
    build_http_client,
)
from .infrastructure.nominatim import SERVICE_NAME as NOMINATIM_SERVICE
from .infrastructure.overpass import SERVICE_NAME as OVERPASS_SERVICE
from .infrastructure.postcodes import SERVICE_NAME as POSTCODES_SERVICE
from .protocols import Cache


def build_cache(config: SearchConfig, service: str) -> Cache:
    """On-disk cache under ``cache_dir/<service>`` when configured, else in-memory."""
    if config.cache_dir:
        return DiskCache(Path(config.cache_dir) / service, ttl_seconds=config.cache_ttl_seconds)
    return TimedCache(ttl_seconds=config.cache_ttl_seconds)


def build_cli_dependencies(*, config: SearchConfig, build_http_clients: bool) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    Args:
        config: Search configuration (used for HTTP client wiring).
        build_http_clients: Whether to construct the upstream API collaborators.
    """
    fs = LocalFileSystem()
    if not build_http_clients:
        return CliDependencies(fs=fs)

    def client_for(service: str, *, max_rpm: int, min_delay_seconds: float) -> CachedHttpClient:
        return build_http_client(
            service=service,
            cache=build_cache(config, service),
            user_agent=config.user_agent,
            max_rpm=max_rpm,
            min_delay_seconds=min_delay_seconds,
            circuit_breaker_threshold=config.circuit_breaker_threshold,
            circuit_breaker_timeout_seconds=config.circuit_breaker_timeout_seconds,
            max_retries=config.max_retries,
            backoff_factor=config.backoff_factor,
            max_backoff_seconds=config.backoff_max_seconds,
            jitter_seconds=config.backoff_jitter_seconds,
            timeout_seconds=config.http_timeout_seconds,
        )

    postcodes = PostcodesIoClient(
        http_client=client_for(
            POSTCODES_SERVICE, max_rpm=config.postcodes_max_rpm, min_delay_seconds=0.0
        ),
        base_url=config.postcodes_base_url,
    )
    overpass = OverpassAmenityCounter(
        http_client=client_for(
            OVERPASS_SERVICE, max_rpm=config.overpass_max_rpm, min_delay_seconds=0.0
        ),
        endpoints=config.overpass_endpoints,
    )
    nominatim = NominatimClient(
        http_client=client_for(
            NOMINATIM_SERVICE,
            max_rpm=config.nominatim_max_rpm,
            min_delay_seconds=config.nominatim_min_delay_seconds,
        ),
        base_url=config.nominatim_base_url,
    )
    return CliDependencies(
        fs=fs,
        resolver=postcodes,
        amenity_counter=overpass,
        postcode_lookup=postcodes,
        name_resolver=nominatim,
        geocoder=nominatim,
        progress=CliProgressReporter(),
    )


app = create_app(build_cli_dependencies)
