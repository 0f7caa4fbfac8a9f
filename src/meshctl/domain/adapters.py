"""Adapter registry entries and adapter-name resolution.

Adapters are addressed by location (``host:port``).  Users usually type
only the leading segment (``meshery-osm``); resolution rewrites that to
the full location advertised by the server's session data.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from meshctl.domain.errors import AdapterUnavailableError


class AdapterEntry(BaseModel):
    """One adapter known to the server."""

    model_config = {"frozen": True, "populate_by_name": True}

    location: str = Field(alias="adapter_location")
    name: str = ""

    @property
    def short_name(self) -> str:
        """Location segment before the first colon."""
        return self.location.split(":", 1)[0]


class SessionData(BaseModel):
    """Subset of the server's session payload that meshctl consumes."""

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

    mesh_adapters: list[AdapterEntry] = Field(default_factory=list, alias="meshAdapters")

    @field_validator("mesh_adapters", mode="before")
    @classmethod
    def _null_is_empty(cls, value: object) -> object:
        return [] if value is None else value


class AdapterTarget(BaseModel):
    """Adapter and mesh identifiers used by the validation request."""

    model_config = {"frozen": True}

    adapter: str
    mesh: str
    resolved: bool = False


def resolve_adapter(
    requested: str,
    adapters: list[AdapterEntry],
    *,
    mesh_name: str | None = None,
) -> AdapterTarget:
    """Rewrite *requested* to the location of the first matching adapter.

    An adapter matches when its location's leading segment equals
    *requested*.  Without a match the inputs come back unchanged.

    Examples:
        >>> entries = [AdapterEntry(location="meshery-osm:10009")]
        >>> resolve_adapter("meshery-osm", entries).adapter
        'meshery-osm:10009'
        >>> resolve_adapter("meshery-istio", entries, mesh_name="istio").mesh
        'istio'
    """
    for entry in adapters:
        if entry.short_name == requested:
            return AdapterTarget(adapter=entry.location, mesh=entry.location, resolved=True)
    return AdapterTarget(adapter=requested, mesh=mesh_name or requested)


def ensure_adapter_available(location: str, adapters: list[AdapterEntry]) -> AdapterEntry:
    """Return the adapter registered at *location*, or raise."""
    if not adapters:
        raise AdapterUnavailableError("No adapters are registered with the server")
    for entry in adapters:
        if entry.location == location:
            return entry
    available = sorted({entry.short_name for entry in adapters})
    raise AdapterUnavailableError(
        f"Adapter '{location}' not found. Available adapters: {', '.join(available)}",
        detail={"requested": location, "available": available},
    )
