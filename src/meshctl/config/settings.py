"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``MESHCTL_*`` prefix (``MESHCTL_SERVER__ENDPOINT``)
  3. TOML file    — ``meshctl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reads whichever file :func:`~meshctl.config.discovery.locate_config`
picks.  Rejected values surface as a ``click.ClickException`` naming the
offending keys and the file they came from.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from meshctl.config.discovery import ConfigLocation, locate_config
from meshctl.config.models import ServerConfig, ValidationConfig
from meshctl.domain.errors import ConfigError


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``meshctl.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class MeshctlSettings(BaseSettings):
    """Unified settings for the meshctl CLI.

    Stored on :class:`~meshctl.commands._context.AppContext` at the CLI
    root and frozen after construction.

    Attributes:
        config_path: The TOML file that was loaded, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "MESHCTL_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    server: ServerConfig = Field(default_factory=ServerConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **cli_flags: Any,
    ) -> MeshctlSettings:
        """Construct settings from CLI invocation.

        The config file comes from :func:`~meshctl.config.discovery.locate_config`.
        CLI flags are merged as highest-priority overrides.

        Raises:
            click.ClickException: The config file is missing, is not valid
                TOML, or holds values the section models reject.
        """
        try:
            location = locate_config(config_path, start=start)
        except ConfigError as exc:
            raise click.ClickException(exc.message) from exc

        toml_path = location.path if location else None
        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        except ValidationError as exc:
            raise click.ClickException(_describe_invalid(exc, location)) from exc
        finally:
            _tls.toml_path = None


def _describe_invalid(exc: ValidationError, location: ConfigLocation | None) -> str:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    source = f" (config file: {location.describe()})" if location else ""
    return f"Invalid configuration{source}: {problems}"
