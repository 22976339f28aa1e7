"""Custom exceptions for CitySieve.

These exceptions provide clear error handling and enable testing of error paths.
"""

from __future__ import annotations


class CitySieveError(Exception):
    """Base exception for all CitySieve errors."""

    pass


class InvalidGeometryError(CitySieveError, ValueError):
    """Raised when grid inputs (centre, radius, spacing) are unusable."""

    def __init__(self, field: str, value: object, requirement: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} {value!r}: {requirement}.")


class PreferenceValueError(CitySieveError, ValueError):
    """Raised when a preference answer falls outside its allowed range."""

    def __init__(self, field: str, value: object, allowed: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Preference '{field}' must be {allowed}; got {value!r}.")


class DependencyMissingError(CitySieveError, RuntimeError):
    """Raised when a required collaborator was not injected."""

    def __init__(self, dependency: str, *, reason: str = "") -> None:
        self.dependency = dependency
        message = f"{dependency} is required."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)


class RateLimitError(CitySieveError):
    """Raised when an upstream API rate limit is exceeded (429 Too Many Requests).

    The search should back off and retry later.
    """

    def __init__(self, retry_after: int = 60) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Retry after {retry_after} seconds.")


class CircuitBreakerOpen(CitySieveError):
    """Raised when the circuit breaker trips due to repeated failures.

    Further requests are refused until the recovery timeout passes.
    """

    def __init__(self, failure_count: int, threshold: int) -> None:
        self.failure_count = failure_count
        self.threshold = threshold
        super().__init__(
            f"Circuit breaker tripped: {failure_count} consecutive failures "
            f"(threshold: {threshold}). Pausing requests to the upstream service."
        )


class UpstreamResponseError(CitySieveError):
    """Raised when an upstream service returns a payload of the wrong shape."""

    def __init__(self, service: str, detail: str) -> None:
        self.service = service
        super().__init__(f"Unexpected response from {service}: {detail}")


class AllEndpointsFailedError(CitySieveError):
    """Raised when every configured mirror of a service failed."""

    def __init__(self, service: str, attempted: int) -> None:
        self.service = service
        self.attempted = attempted
        super().__init__(f"All {attempted} {service} endpoints failed.")


class ConfigFileNotFoundError(CitySieveError, FileNotFoundError):
    """Raised when a TOML config or preferences file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")


class ConfigFileParseError(CitySieveError, ValueError):
    """Raised when a TOML file cannot be parsed."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Could not parse {path}: {detail}")


class ConfigFileValidationError(CitySieveError, ValueError):
    """Raised when a TOML file parses but contains invalid values."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Invalid values in {path}: {detail}")
