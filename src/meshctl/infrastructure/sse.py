"""Server-sent event (``text/event-stream``) decoding.

:func:`iter_sse` turns raw lines into :class:`ServerSentEvent` frames;
:func:`decode_events` turns frames carrying JSON data into
:class:`~meshctl.domain.events.StreamEvent` objects.  Both are lazy so a
long-lived stream is consumed one event at a time.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from pydantic import ValidationError

from meshctl.domain.errors import StreamError
from meshctl.domain.events import StreamEvent


@dataclass(frozen=True)
class ServerSentEvent:
    """One dispatched SSE frame."""

    event: str = "message"
    data: str = ""
    id: str | None = None
    retry: int | None = None


def iter_sse(lines: Iterable[str]) -> Iterator[ServerSentEvent]:
    """Yield a frame for every blank-line-terminated block of fields.

    Comment lines (leading ``:``) are ignored, multiple ``data`` lines are
    joined with newlines, and blocks without data are dropped.
    """
    event = ""
    data: list[str] = []
    last_id: str | None = None
    retry: int | None = None

    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line:
            if data:
                yield ServerSentEvent(
                    event=event or "message",
                    data="\n".join(data),
                    id=last_id,
                    retry=retry,
                )
            event, data, retry = "", [], None
            continue
        if line.startswith(":"):
            continue

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "event":
            event = value
        elif field == "data":
            data.append(value)
        elif field == "id":
            if "\0" not in value:
                last_id = value
        elif field == "retry":
            if value.isdigit():
                retry = int(value)

    # Connection closed mid-block: the partial frame is discarded.


def decode_events(frames: Iterable[ServerSentEvent]) -> Iterator[StreamEvent]:
    """Decode each frame's JSON data into a :class:`StreamEvent`.

    Raises:
        StreamError: A frame's data is not a JSON object of the expected shape.
    """
    for frame in frames:
        try:
            payload = json.loads(frame.data)
        except json.JSONDecodeError as exc:
            raise StreamError(
                f"Malformed event data: {exc}",
                detail={"data": frame.data[:200]},
            ) from exc
        if not isinstance(payload, dict):
            raise StreamError(
                "Event data is not a JSON object",
                detail={"data": frame.data[:200]},
            )
        try:
            event = StreamEvent.model_validate(payload)
        except ValidationError as exc:
            raise StreamError(f"Unexpected event shape: {exc}") from exc
        yield event
