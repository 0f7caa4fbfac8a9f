"""Locate the ``meshctl.toml`` that settings are loaded from.

Lookup order, first hit wins:

1. ``--config PATH`` on the command line
2. ``MESHCTL_CONFIG`` in the environment
3. the nearest ``meshctl.toml`` in the working directory or its parents

A path named explicitly (1 or 2) must exist.  Only the walk-up is allowed
to come back empty, in which case the built-in defaults apply.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from meshctl.domain.errors import ConfigError

CONFIG_FILENAME = "meshctl.toml"
CONFIG_ENV_VAR = "MESHCTL_CONFIG"


@dataclass(frozen=True)
class ConfigLocation:
    """A config file together with how it was chosen."""

    path: Path
    origin: str

    def describe(self) -> str:
        return f"{self.path} (from {self.origin})"


def find_config(start: Path | None = None) -> Path | None:
    """Return the nearest ``meshctl.toml`` at or above *start* (default: cwd)."""
    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def locate_config(
    explicit: str | Path | None = None, *, start: Path | None = None
) -> ConfigLocation | None:
    """Resolve which config file applies to this invocation.

    Raises:
        ConfigError: ``--config`` or ``MESHCTL_CONFIG`` names a missing file.
    """
    if explicit:
        return _require(Path(explicit), "--config")

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return _require(Path(env_path), CONFIG_ENV_VAR)

    found = find_config(start)
    return ConfigLocation(found, "discovery") if found else None


def _require(path: Path, origin: str) -> ConfigLocation:
    if not path.is_file():
        raise ConfigError(
            f"Config file not found: {path} (from {origin})",
            detail={"path": str(path), "origin": origin},
        )
    return ConfigLocation(path, origin)
