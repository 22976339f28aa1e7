"""Typed parsing and validation for search config files.

Example file:

    schema_version = 1

    [search]
    radius_km = 25
    top_n = 15
    cache_dir = "data/cache/http"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError
from .infrastructure.postcodes import MAX_BULK_GEOLOCATIONS
from .protocols import FileSystem

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class SearchConfigFile:
    """Validated search config values loaded from a TOML file."""

    radius_km: float | None = None
    top_n: int | None = None
    validation_batch_size: int | None = None
    enrichment_batch_size: int | None = None
    user_agent: str | None = None
    postcodes_base_url: str | None = None
    nominatim_base_url: str | None = None
    overpass_endpoints: tuple[str, ...] | None = None
    http_timeout_seconds: float | None = None
    cache_dir: str | None = None
    cache_ttl_seconds: float | None = None


class _SearchSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    radius_km: float | None = None
    top_n: int | None = None
    validation_batch_size: int | None = None
    enrichment_batch_size: int | None = None
    user_agent: str | None = None
    postcodes_base_url: str | None = None
    nominatim_base_url: str | None = None
    overpass_endpoints: tuple[str, ...] | None = None
    http_timeout_seconds: float | None = None
    cache_dir: str | None = None
    cache_ttl_seconds: float | None = None

    @field_validator("top_n", "validation_batch_size", "enrichment_batch_size")
    @classmethod
    def _validate_positive_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1:
            raise ValueError
        return value

    @field_validator("radius_km", "http_timeout_seconds", "cache_ttl_seconds")
    @classmethod
    def _validate_positive_float(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0:
            raise ValueError
        return value

    @field_validator("validation_batch_size")
    @classmethod
    def _validate_bulk_limit(cls, value: int | None) -> int | None:
        if value is not None and value > MAX_BULK_GEOLOCATIONS:
            raise ValueError
        return value

    @field_validator("user_agent", "postcodes_base_url", "nominatim_base_url", "cache_dir")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("overpass_endpoints")
    @classmethod
    def _validate_endpoints(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        cleaned = tuple(item.strip() for item in value if item.strip())
        if not cleaned:
            raise ValueError
        return cleaned


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    search: _SearchSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_toml_payload(*, path: Path, fs: FileSystem) -> object:
    """Read and parse a TOML file, raising the config-file errors on failure."""
    if not fs.exists(path):
        raise ConfigFileNotFoundError(str(path))

    raw_payload = fs.read_text(path)
    try:
        return tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc


def load_search_config_file(*, path: Path, fs: FileSystem) -> SearchConfigFile:
    """Load and validate a search TOML config file."""
    payload = load_toml_payload(path=path, fs=fs)
    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), format_validation_error(exc)) from exc

    section = model.search
    return SearchConfigFile(
        radius_km=section.radius_km,
        top_n=section.top_n,
        validation_batch_size=section.validation_batch_size,
        enrichment_batch_size=section.enrichment_batch_size,
        user_agent=section.user_agent,
        postcodes_base_url=section.postcodes_base_url,
        nominatim_base_url=section.nominatim_base_url,
        overpass_endpoints=section.overpass_endpoints,
        http_timeout_seconds=section.http_timeout_seconds,
        cache_dir=section.cache_dir,
        cache_ttl_seconds=section.cache_ttl_seconds,
    )
