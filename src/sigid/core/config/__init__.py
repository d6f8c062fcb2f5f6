"""
Configuration models and loading.

This module provides Pydantic models for identifier configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    Algorithm,
    AuditLevel,
    AuditOptions,
    CaseStyle,
    ChecksumPosition,
    ConfigLike,
    IdentifierConfig,
    Mode,
    RateLimitOptions,
    SecurityOptions,
    VerificationMethod,
    as_config,
)

__all__ = [
    # Models
    "Algorithm",
    "AuditLevel",
    "AuditOptions",
    "CaseStyle",
    "ChecksumPosition",
    "ConfigLike",
    "IdentifierConfig",
    "Mode",
    "RateLimitOptions",
    "SecurityOptions",
    "VerificationMethod",
    "as_config",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
]
