"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, meshctl.toml only contains overrides.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_ENDPOINT = "http://localhost:9081"


class ServerConfig(BaseModel):
    """[server] section."""

    model_config = {"frozen": True}

    endpoint: str = DEFAULT_ENDPOINT
    request_timeout: float = 30.0
    token_path: Path | None = None


class ValidationConfig(BaseModel):
    """[validation] section."""

    model_config = {"frozen": True}

    spec: str = "smi"
    adapter: str = "meshery-osm"
    namespace: str = "default"
    watch_timeout: float = Field(default=1200.0, gt=0)
    event_client: str = "cli_validate"
    error_marker: str = "error"
