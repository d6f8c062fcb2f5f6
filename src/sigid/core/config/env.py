"""
Layered .env loading for sigid secrets.

``SIGID_SECRET``, ``SIGID_PEPPER`` and ``SIGID_SALT`` are meant to live
outside committed config. They may come from, in order of precedence:

    process environment > project .env.local > project .env > user .env

(user .env is ``$XDG_CONFIG_HOME/sigid/.env``). A file never overrides a
variable that was already in the process environment before loading.

load_layered_env() reports where every ``SIGID_*`` variable it set came
from, so callers can log provenance without logging values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

ENV_PREFIX = "SIGID_"
SECRET_KEYS = ("SIGID_SECRET", "SIGID_PEPPER", "SIGID_SALT")


class EnvLayer(str, Enum):
    """Where a .env value was read from."""

    USER = "user"
    PROJECT = "project"


@dataclass(frozen=True)
class EnvSource:
    """Provenance of one variable set from a .env file."""

    key: str
    layer: EnvLayer
    path: Path

    @property
    def is_secret(self) -> bool:
        return self.key in SECRET_KEYS


def default_user_env_paths() -> list[Path]:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return [Path(config_home) / "sigid" / ".env"]


def default_project_env_paths(project_dir: Path) -> list[Path]:
    # .env.local is read last so it wins over .env
    return [project_dir / ".env", project_dir / ".env.local"]


def read_env_file(path: Path) -> dict[str, str]:
    """Variables defined in ``path``; keys without a value are skipped."""
    if not path.is_file():
        return {}
    return {str(k): str(v) for k, v in dotenv_values(path).items() if k and v is not None}


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, EnvSource]:
    """
    Load user and project .env files into ``os.environ``.

    Args:
        project_dir: Base directory for project .env files (defaults to cwd)
        user_env_paths: Explicit user-layer files
        project_env_paths: Explicit project-layer files

    Returns:
        Mapping of each ``SIGID_*`` variable set here to its source. Other
        variables are loaded too but not reported.
    """
    if user_env_paths is None:
        user_env_paths = default_user_env_paths()
    if project_env_paths is None:
        project_env_paths = default_project_env_paths(project_dir or Path.cwd())

    preexisting = set(os.environ)
    sources: dict[str, EnvSource] = {}

    layers = (
        (EnvLayer.USER, user_env_paths),
        (EnvLayer.PROJECT, project_env_paths),
    )
    for layer, paths in layers:
        for path in map(Path, paths):
            for key, value in read_env_file(path).items():
                if key in preexisting:
                    continue
                os.environ[key] = value
                if key.startswith(ENV_PREFIX):
                    sources[key] = EnvSource(key=key, layer=layer, path=path)

    return sources
