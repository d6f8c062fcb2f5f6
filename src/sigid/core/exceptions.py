"""
Custom exceptions for identifier generation and verification.

Exception Hierarchy:
    IdentifierError (base)
    ├── ConfigurationError (invalid or insufficient configuration)
    ├── GenerationExhaustedError (collision retry budget exceeded)
    ├── RateLimitedError (rate limiter rejected the request)
    └── MalformedIdentifierError (identifier does not match its configuration)

Verification functions never raise these: they convert internal failures to
``False`` (or a reason code) at the public boundary.

Example:
    >>> from sigid.core.exceptions import ConfigurationError
    >>> try:
    ...     raise ConfigurationError("Secret is required for mode: hmac", mode="hmac")
    ... except ConfigurationError as e:
    ...     print(e.context["mode"])
    hmac
"""


class IdentifierError(Exception):
    """
    Base exception for all identifier-related errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class ConfigurationError(IdentifierError, ValueError):
    """
    Exception raised when a configuration cannot produce a valid identifier.

    Always raised before any cryptographic work starts. Covers missing
    secrets, missing TTL/device id/geo region, checksum positions out of
    bounds, unusable alphabets and separators, and lengths too short for the
    requested features.
    """


class InsufficientLengthError(ConfigurationError):
    """
    Requested length cannot hold metadata, checksums and a minimum core.

    Carries the numeric breakdown so callers can self-correct.

    Attributes:
        requested_length: Effective requested length
        metadata_length: Characters consumed by embedded metadata
        checksum_length: Characters consumed by checksum blocks
        marker_length: Characters consumed by the steganographic marker
        minimum_core_length: Minimum core payload length
        required_length: Smallest length that would be accepted
    """

    def __init__(
        self,
        requested_length: int,
        metadata_length: int,
        checksum_length: int,
        marker_length: int,
        minimum_core_length: int,
    ) -> None:
        self.requested_length = requested_length
        self.metadata_length = metadata_length
        self.checksum_length = checksum_length
        self.marker_length = marker_length
        self.minimum_core_length = minimum_core_length
        self.required_length = (
            metadata_length + checksum_length + marker_length + minimum_core_length
        )

        parts = [f"metadata {metadata_length}", f"checksums {checksum_length}"]
        if marker_length:
            parts.append(f"marker {marker_length}")
        parts.append(f"minimum core {minimum_core_length}")
        message = (
            f"Length {requested_length} is insufficient: "
            f"{' + '.join(parts)} = {self.required_length} characters required. "
            f"Increase length to at least {self.required_length} or disable features."
        )
        super().__init__(
            message,
            requested_length=requested_length,
            required_length=self.required_length,
        )


class GenerationExhaustedError(IdentifierError):
    """
    Exception raised when collision avoidance runs out of retries.

    Attributes:
        attempts: Number of regenerations attempted
    """

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"Failed to generate a unique identifier after {attempts} attempts",
            attempts=attempts,
        )


class RateLimitedError(IdentifierError):
    """
    Exception raised when the rate limiter rejects a generation request.

    Attributes:
        identifier: Rate limit key (user, IP, "global", ...)
        max_requests: Allowed requests per window
        window_ms: Window size in milliseconds
    """

    def __init__(self, identifier: str, max_requests: int, window_ms: int) -> None:
        self.identifier = identifier
        self.max_requests = max_requests
        self.window_ms = window_ms
        super().__init__(
            f"Rate limit exceeded for '{identifier}': "
            f"{max_requests} requests per {window_ms} ms",
            identifier=identifier,
        )


class MalformedIdentifierError(IdentifierError):
    """
    Exception raised when an identifier cannot be taken apart with its config.

    Raised by extraction and parsing functions; verification converts it to a
    failed result.
    """


__all__ = [
    "IdentifierError",
    "ConfigurationError",
    "InsufficientLengthError",
    "GenerationExhaustedError",
    "RateLimitedError",
    "MalformedIdentifierError",
]
