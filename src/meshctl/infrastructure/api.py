"""MesheryClient — typed access to the management server's HTTP API.

Every request goes through :meth:`MesheryClient._build` and
:meth:`MesheryClient._send` so construction failures and transport
failures surface as distinct errors:

* :class:`~meshctl.domain.errors.RequestBuildError` — nothing was sent.
* :class:`~meshctl.domain.errors.RequestFailedError` — the send failed or
  the server answered with an error status.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from typing import Any

import httpx
from pydantic import ValidationError

from meshctl.domain.adapters import SessionData
from meshctl.domain.errors import (
    RequestBuildError,
    RequestFailedError,
    SessionDataError,
    StreamError,
)
from meshctl.domain.events import StreamEvent
from meshctl.domain.operation import Operation
from meshctl.infrastructure.sse import decode_events, iter_sse

logger = logging.getLogger(__name__)

SESSION_PATH = "/api/system/sync"
OPERATION_PATH = "/api/system/adapter/operation"
EVENTS_PATH = "/api/events"
EVENT_STREAM_TYPE = "text/event-stream"


class MesheryClient:
    """Thin wrapper over an ``httpx.Client`` bound to one server endpoint.

    The client owns the ``httpx.Client`` and closes it on :meth:`close`
    or when used as a context manager.
    """

    def __init__(self, base_url: str, http: httpx.Client) -> None:
        self.base_url = base_url
        self._http = http

    def __enter__(self) -> MesheryClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # -- Request plumbing --

    def _url(self, path: str) -> str:
        try:
            base = httpx.URL(self.base_url)
        except httpx.InvalidURL as exc:
            raise RequestBuildError(f"Invalid server endpoint '{self.base_url}': {exc}") from exc
        if base.scheme not in ("http", "https") or not base.host:
            raise RequestBuildError(
                f"Invalid server endpoint '{self.base_url}': expected http(s)://host[:port]",
                detail={"endpoint": self.base_url},
            )
        return self.base_url.rstrip("/") + path

    def _build(self, method: str, path: str, **kwargs: Any) -> httpx.Request:
        url = self._url(path)
        try:
            return self._http.build_request(method, url, **kwargs)
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise RequestBuildError(f"Cannot build {method} {path}: {exc}") from exc

    def _send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        logger.debug("%s %s", request.method, request.url)
        try:
            response = self._http.send(request, stream=stream)
        except httpx.HTTPError as exc:
            raise RequestFailedError(
                f"{request.method} {request.url.path} failed: {exc}",
                detail={"url": str(request.url)},
            ) from exc
        if response.is_error:
            if stream:
                response.close()
            raise RequestFailedError(
                f"{request.method} {request.url.path} returned HTTP {response.status_code}",
                detail={"url": str(request.url), "status": response.status_code},
            )
        return response

    # -- Endpoints --

    def get_session_data(self) -> SessionData:
        """Fetch the session payload listing the registered adapters."""
        response = self._send(self._build("GET", SESSION_PATH))
        try:
            return SessionData.model_validate_json(response.content)
        except ValidationError as exc:
            raise SessionDataError(f"Unreadable session data: {exc}") from exc

    def send_validate_request(self, operation: Operation) -> str:
        """Submit *operation* and return the server's acknowledgement text.

        The server only confirms that it accepted the operation; completion
        is reported later on the event stream.
        """
        request = self._build(
            "POST",
            OPERATION_PATH,
            data=operation.to_form(),
            headers={"Content-Type": "application/x-www-form-urlencoded;charset=UTF-8"},
        )
        response = self._send(request)
        return response.text

    @contextmanager
    def open_event_stream(
        self, client_name: str = "cli_validate"
    ) -> Iterator[Iterator[StreamEvent]]:
        """Open the server's event feed and yield a lazy iterator of events.

        When the ``with`` block exits the socket is shut down before the
        response is closed.  Closing alone does not wake a thread blocked in
        a read on a real connection; the shutdown does, and the server sees
        the connection end.
        """
        request = self._build(
            "GET",
            EVENTS_PATH,
            params={"client": client_name},
            headers={"Accept": EVENT_STREAM_TYPE},
            timeout=httpx.Timeout(self._http.timeout.connect, read=None),
        )
        response = self._send(request, stream=True)
        try:
            content_type = response.headers.get("content-type", "")
            if EVENT_STREAM_TYPE not in content_type:
                raise StreamError(
                    f"Expected {EVENT_STREAM_TYPE} from {EVENTS_PATH}, "
                    f"got '{content_type or 'nothing'}'"
                )
            yield decode_events(iter_sse(_iter_lines(response)))
        finally:
            _shutdown_socket(response)
            response.close()


def _iter_lines(response: httpx.Response) -> Iterator[str]:
    try:
        yield from response.iter_lines()
    except (httpx.HTTPError, httpx.StreamError) as exc:
        raise StreamError(f"Event stream interrupted: {exc}") from exc


def _shutdown_socket(response: httpx.Response) -> None:
    """Shut down the connection under *response* in both directions.

    In-memory transports carry no network stream and are left alone.
    """
    network_stream = response.extensions.get("network_stream")
    if network_stream is None:
        return
    sock = network_stream.get_extra_info("socket")
    if sock is None:
        return
    # ENOTCONN when the peer already went away.
    with suppress(OSError):
        sock.shutdown(socket.SHUT_RDWR)
