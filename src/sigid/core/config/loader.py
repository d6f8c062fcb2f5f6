"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars

Secrets (secret, pepper, salt) are expected to come from the environment or
from .env files outside the project tree rather than from committed JSON.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .env import EnvLayer, EnvSource, load_layered_env
from .models import IdentifierConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per process
_config_cache: IdentifierConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/sigid/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "sigid" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .sigid.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".sigid.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> base = {"length": 32, "security": {"ttl": 60, "embed_expiry": True}}
        >>> override = {"security": {"ttl": 120}}
        >>> deep_merge(base, override)
        {'length': 32, 'security': {'ttl': 120, 'embed_expiry': True}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning("Ignoring config at %s: top level is not an object", path)
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        SIGID_SECRET - overrides secret
        SIGID_PEPPER - overrides pepper
        SIGID_SALT - overrides salt
        SIGID_LENGTH - overrides length
        SIGID_ALGORITHM - overrides algorithm
        SIGID_MODE - overrides mode

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    for env_name, key in (
        ("SIGID_SECRET", "secret"),
        ("SIGID_PEPPER", "pepper"),
        ("SIGID_SALT", "salt"),
        ("SIGID_ALGORITHM", "algorithm"),
        ("SIGID_MODE", "mode"),
    ):
        if value := os.environ.get(env_name):
            result[key] = value

    if length_str := os.environ.get("SIGID_LENGTH"):
        try:
            length = int(length_str)
        except ValueError:
            logger.warning("Invalid SIGID_LENGTH value '%s', ignoring", length_str)
        else:
            if length < 1:
                logger.warning("SIGID_LENGTH must be >= 1, got %d, ignoring", length)
            else:
                result["length"] = length

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "length": 32,
        "algorithm": "sha256",
        "mode": "random",
        "case": "upper",
        "security": {"audit": {"enabled": False, "level": "minimal"}},
    }


def _log_env_sources(sources: dict[str, EnvSource]) -> None:
    """Log where secret variables came from. Values are never logged."""
    for source in sources.values():
        if not source.is_secret:
            continue
        logger.debug("%s loaded from %s .env file %s", source.key, source.layer.value, source.path)
        if source.key == "SIGID_PEPPER" and source.layer == EnvLayer.PROJECT:
            logger.warning(
                "SIGID_PEPPER is read from project file %s; keep the pepper outside the project tree",
                source.path,
            )


def load_config(
    project_dir: Path | None = None,
    use_cache: bool = True,
    load_env: bool = True,
) -> IdentifierConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (SIGID_*), including values from .env files
        2. Project config (.sigid.json)
        3. User config (~/.config/sigid/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .sigid.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load
        load_env: If True, load user and project .env files first

    Returns:
        Validated IdentifierConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    if load_env:
        _log_env_sources(load_layered_env(project_dir=project_dir))

    merged = get_default_config()

    user_config_path = get_user_config_path()
    if user_config := load_json_file(user_config_path):
        merged = deep_merge(merged, user_config)

    project_config_path = get_project_config_path(project_dir)
    if project_config := load_json_file(project_config_path):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = IdentifierConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
