"""Mesh operation payload and the validation spec table."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from meshctl.domain.errors import InvalidOperationError


class Operation(BaseModel):
    """Body sent to the adapter operation endpoint.

    Serialized form-encoded using the server's field names.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    adapter: str
    custom_body: str = Field(default="", alias="customBody")
    delete_op: str = Field(default="", alias="deleteOp")
    namespace: str = "default"
    query: str

    @field_validator("adapter", "query")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return value

    def to_form(self) -> dict[str, Any]:
        """Form fields keyed by the server's names."""
        return self.model_dump(by_alias=True)


class ValidationSpec(BaseModel):
    """A conformance specification the server knows how to run.

    Attributes:
        name: Value accepted by ``--spec``.
        query: Operation name sent to the adapter.
        watch_summary: Substring of the event summary reporting completion.
    """

    model_config = {"frozen": True}

    name: str
    query: str
    watch_summary: str


VALIDATION_SPECS: dict[str, ValidationSpec] = {
    "smi": ValidationSpec(
        name="smi",
        query="smi_conformance",
        watch_summary="Smi conformance test",
    ),
}


def get_validation_spec(name: str) -> ValidationSpec:
    try:
        return VALIDATION_SPECS[name]
    except KeyError:
        supported = ", ".join(sorted(VALIDATION_SPECS))
        raise InvalidOperationError(
            f"Unsupported specification '{name}'. Supported: {supported}",
            detail={"spec": name},
        ) from None


def build_validate_operation(
    adapter: str,
    spec: ValidationSpec,
    *,
    namespace: str = "default",
) -> Operation:
    """Build the operation that starts validation; ``deleteOp`` is left empty."""
    try:
        return Operation(
            adapter=adapter,
            query=spec.query,
            namespace=namespace,
        )
    except ValueError as exc:
        raise InvalidOperationError(f"Invalid validation operation: {exc}") from exc
