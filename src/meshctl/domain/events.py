"""Server event payloads and match classification."""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, BaseModel, Field


class StreamEvent(BaseModel):
    """Decoded ``data`` payload of one server-sent event."""

    model_config = {"frozen": True, "extra": "ignore"}

    summary: str = Field(default="", validation_alias=AliasChoices("summary", "Summary"))
    details: str = Field(default="", validation_alias=AliasChoices("details", "Details"))
    event_type: int | str | None = Field(
        default=None, validation_alias=AliasChoices("event_type", "EventType")
    )
    operation_id: str | None = Field(
        default=None, validation_alias=AliasChoices("operation_id", "OperationID")
    )


class WaitResult(StrEnum):
    SUCCESSFUL = "successful"
    ERROR = "error"
    TIMEOUT = "timeout"


def classify_event(
    event: StreamEvent, query: str, *, error_marker: str = "error"
) -> WaitResult | None:
    """Classify *event* against the expected summary *query*.

    A summary match wins over an error marker in the details.  Returns None
    for events that match neither.
    """
    if query in event.summary:
        return WaitResult.SUCCESSFUL
    if error_marker and error_marker in event.details:
        return WaitResult.ERROR
    return None
