"""EventStreamWatcher — wait for a matching event, bounded by a timeout.

A daemon worker thread reads the server's event feed and hands exactly one
signal to the caller through a single-slot queue.  The caller blocks on
that queue for at most ``timeout`` seconds.  The event response is owned
by the caller's ``with`` block.  On every exit path (match, failure,
timeout) its socket is shut down and closed, which wakes a worker blocked
in a read and lets it end before the caller returns.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from meshctl.domain.errors import (
    ConformanceFailedError,
    MeshctlError,
    StreamError,
    WaitTimeoutError,
)
from meshctl.domain.events import StreamEvent, WaitResult, classify_event

if TYPE_CHECKING:
    from meshctl.infrastructure.api import MesheryClient

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 1200.0
# How long to wait for the worker after its stream has been closed.
_JOIN_GRACE_SECONDS = 1.0


@dataclass(frozen=True)
class WatchOutcome:
    """Terminal classification of one watch."""

    result: WaitResult
    event: StreamEvent | None = None


class EventStreamWatcher:
    """Watch the event feed until an event matches *query* or time runs out."""

    def __init__(
        self,
        client: MesheryClient,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client_name: str = "cli_validate",
        error_marker: str = "error",
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._client_name = client_name
        self._error_marker = error_marker

    def wait_for(self, query: str) -> WatchOutcome:
        """Block until the first event classifies, or the timeout elapses.

        Returns:
            The successful outcome with the matching event.

        Raises:
            RequestBuildError: The stream request could not be built.
            RequestFailedError: Opening the stream failed.
            StreamError: Decoding failed, or the stream ended before a match.
            ConformanceFailedError: An event reported an error.
            WaitTimeoutError: Nothing matched within the timeout.
        """
        handoff: queue.Queue[WatchOutcome | MeshctlError] = queue.Queue(maxsize=1)
        stop = threading.Event()

        with self._client.open_event_stream(self._client_name) as events:
            worker = threading.Thread(
                target=self._consume,
                args=(events, query, handoff, stop),
                name="meshctl-event-watch",
                daemon=True,
            )
            worker.start()
            try:
                signal = handoff.get(timeout=self._timeout)
            except queue.Empty:
                signal = None
            finally:
                stop.set()
        worker.join(timeout=_JOIN_GRACE_SECONDS)

        if signal is None:
            raise WaitTimeoutError(
                f"No response from the server within {self._timeout:g} seconds",
                detail={"timeout": self._timeout, "query": query},
            )
        if isinstance(signal, MeshctlError):
            raise signal

        outcome = signal
        event = outcome.event
        if outcome.result is WaitResult.ERROR:
            raise ConformanceFailedError(
                f"Conformance tests failed: {event.summary if event else 'unknown error'}",
                detail={
                    "summary": event.summary if event else "",
                    "details": event.details if event else "",
                },
            )
        return outcome

    def _consume(
        self,
        events: Iterator[StreamEvent],
        query: str,
        handoff: queue.Queue[WatchOutcome | MeshctlError],
        stop: threading.Event,
    ) -> None:
        """Worker body: publish the first classified event, or the failure."""
        try:
            for event in events:
                if stop.is_set():
                    return
                verdict = classify_event(event, query, error_marker=self._error_marker)
                if verdict is None:
                    logger.debug("Skipping event: %s", event.summary)
                    continue
                logger.info("%s\n%s", event.summary, event.details)
                handoff.put(WatchOutcome(result=verdict, event=event))
                return
        except Exception as exc:
            # Read errors after the caller closed the stream are expected.
            if stop.is_set():
                logger.debug("Event stream read ended after release: %r", exc)
            else:
                handoff.put(_as_meshctl_error(exc))
            return
        if not stop.is_set():
            handoff.put(StreamError("Event stream closed before a result arrived"))


def _as_meshctl_error(exc: Exception) -> MeshctlError:
    if isinstance(exc, MeshctlError):
        return exc
    error = StreamError(
        f"Event stream failed: {exc}", detail={"exception": type(exc).__name__}
    )
    error.__cause__ = exc
    return error
