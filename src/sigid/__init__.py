"""
sigid - signed, structured identifiers

Generates and verifies compact, tamper-evident identifiers (transaction IDs,
API keys, session tokens) with optional embedded metadata and checksums.
"""

__version__ = "0.1.0"

# Re-export the main API for convenience
from sigid.core.config.models import IdentifierConfig, SecurityOptions
from sigid.core.exceptions import (
    ConfigurationError,
    GenerationExhaustedError,
    IdentifierError,
    RateLimitedError,
)
from sigid.core.ids import (
    IdentifierContext,
    IdentifierGenerator,
    agenerate_id,
    averify_id,
    check_id,
    generate_id,
    generate_random_salt,
    parse_id,
    verify_id,
)

__all__ = [
    "ConfigurationError",
    "GenerationExhaustedError",
    "IdentifierConfig",
    "IdentifierContext",
    "IdentifierError",
    "IdentifierGenerator",
    "RateLimitedError",
    "SecurityOptions",
    "__version__",
    "agenerate_id",
    "averify_id",
    "check_id",
    "generate_id",
    "generate_random_salt",
    "parse_id",
    "verify_id",
]
