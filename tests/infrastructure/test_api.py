"""Tests for MesheryClient against an in-process fake server."""

from __future__ import annotations

import httpx
import pytest

from meshctl.domain.errors import (
    RequestBuildError,
    RequestFailedError,
    SessionDataError,
    StreamError,
)
from meshctl.domain.operation import Operation
from meshctl.infrastructure.api import MesheryClient
from tests.conftest import FakeServer


class TestRequestConstruction:
    @pytest.mark.parametrize(
        "base_url",
        ["not-a-url", "localhost:9081", "ftp://meshery.test", "http://"],
    )
    def test_malformed_endpoint_sends_nothing(self, server: FakeServer, base_url: str) -> None:
        with server.client(base_url) as client:
            with pytest.raises(RequestBuildError) as exc_info:
                client.get_session_data()
        assert exc_info.value.code == "REQUEST_INVALID"
        assert server.requests == []

    def test_trailing_slash_in_endpoint(self, server: FakeServer) -> None:
        with server.client("http://meshery.test:9081/") as client:
            client.get_session_data()
        assert server.requests[0].url.path == "/api/system/sync"


class TestTransport:
    def test_connection_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http = httpx.Client(transport=httpx.MockTransport(refuse))
        with MesheryClient("http://meshery.test:9081", http) as client:
            with pytest.raises(RequestFailedError, match="connection refused"):
                client.get_session_data()

    def test_error_status(self, server: FakeServer, client: MesheryClient) -> None:
        server.session_status = 401
        with pytest.raises(RequestFailedError, match="HTTP 401") as exc_info:
            client.get_session_data()
        assert exc_info.value.detail["status"] == 401


class TestSessionData:
    def test_adapters(self, client: MesheryClient) -> None:
        session = client.get_session_data()
        assert [a.location for a in session.mesh_adapters] == [
            "meshery-osm:10009",
            "meshery-istio:10000",
        ]

    def test_not_json(self, server: FakeServer, client: MesheryClient) -> None:
        server.session_body = b"<html>login</html>"
        with pytest.raises(SessionDataError):
            client.get_session_data()


class TestSendValidateRequest:
    def test_posts_form(self, server: FakeServer, client: MesheryClient) -> None:
        reply = client.send_validate_request(
            Operation(adapter="meshery-osm:10009", query="smi_conformance", namespace="osm")
        )
        assert reply == "Operation submitted"
        request = server.requests[-1]
        assert request.method == "POST"
        assert request.headers["Content-Type"].startswith("application/x-www-form-urlencoded")
        assert server.operation_forms() == [
            {
                "adapter": ["meshery-osm:10009"],
                "customBody": [""],
                "deleteOp": [""],
                "namespace": ["osm"],
                "query": ["smi_conformance"],
            }
        ]

    def test_rejected(self, server: FakeServer, client: MesheryClient) -> None:
        server.operation_status = 500
        with pytest.raises(RequestFailedError, match="HTTP 500"):
            client.send_validate_request(Operation(adapter="a:1", query="q"))


class TestEventStream:
    def test_request_shape(self, server: FakeServer, client: MesheryClient) -> None:
        with client.open_event_stream("cli_validate") as events:
            assert list(events) == []
        request = server.requests[-1]
        assert request.url.path == "/api/events"
        assert request.url.params["client"] == "cli_validate"
        assert request.headers["Accept"] == "text/event-stream"

    def test_decodes_events(self, server: FakeServer, client: MesheryClient) -> None:
        server.events = [{"summary": "one", "details": ""}, ": keepalive\n\n", {"Summary": "two"}]
        with client.open_event_stream() as events:
            assert [e.summary for e in events] == ["one", "two"]

    def test_wrong_content_type(self, server: FakeServer, client: MesheryClient) -> None:
        server.events_content_type = "application/json"
        with pytest.raises(StreamError, match="text/event-stream"):
            with client.open_event_stream():
                pass

    def test_error_status(self, server: FakeServer, client: MesheryClient) -> None:
        server.events_status = 503
        with pytest.raises(RequestFailedError, match="HTTP 503"):
            with client.open_event_stream():
                pass

    def test_response_closed_on_exit(self, server: FakeServer, client: MesheryClient) -> None:
        server.hold_stream = True
        server.events = [{"summary": "one"}]
        with client.open_event_stream() as events:
            assert next(events).summary == "one"
        assert server.streams[0].closed
