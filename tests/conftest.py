"""Shared pytest fixtures and test helpers for meshctl tests."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from click.testing import CliRunner

from meshctl.infrastructure import http as http_module
from meshctl.infrastructure.api import MesheryClient

BASE_URL = "http://meshery.test:9081"

DEFAULT_ADAPTERS: list[dict[str, Any]] = [
    {"adapter_location": "meshery-osm:10009", "name": "OSM"},
    {"adapter_location": "meshery-istio:10000", "name": "ISTIO"},
]


def sse(*payloads: dict[str, Any] | str) -> bytes:
    """Encode payloads as an SSE body. Strings are inserted verbatim."""
    parts: list[str] = []
    for payload in payloads:
        if isinstance(payload, str):
            parts.append(payload)
        else:
            parts.append(f"data: {json.dumps(payload)}\n\n")
    return "".join(parts).encode()


class HeldStream(httpx.SyncByteStream):
    """Event body that stays open after its chunks until the client closes it."""

    def __init__(self, body: bytes, *, max_hold: float = 5.0) -> None:
        self._body = body
        self._max_hold = max_hold
        self._released = threading.Event()

    @property
    def closed(self) -> bool:
        return self._released.is_set()

    def __iter__(self) -> Iterator[bytes]:
        if self._body:
            yield self._body
        self._released.wait(self._max_hold)

    def close(self) -> None:
        self._released.set()


@dataclass
class FakeServer:
    """In-process stand-in for the management server's HTTP API."""

    adapters: list[dict[str, Any]] | None = field(default_factory=lambda: list(DEFAULT_ADAPTERS))
    session_status: int = 200
    session_body: bytes | None = None
    operation_status: int = 200
    operation_reply: str = "Operation submitted"
    events: list[dict[str, Any] | str] = field(default_factory=list)
    events_status: int = 200
    events_content_type: str = "text/event-stream"
    hold_stream: bool = False
    requests: list[httpx.Request] = field(default_factory=list)
    streams: list[HeldStream] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/system/sync" and request.method == "GET":
            if self.session_body is not None:
                return httpx.Response(self.session_status, content=self.session_body)
            return httpx.Response(self.session_status, json={"meshAdapters": self.adapters})
        if path == "/api/system/adapter/operation" and request.method == "POST":
            return httpx.Response(self.operation_status, text=self.operation_reply)
        if path == "/api/events" and request.method == "GET":
            headers = {"content-type": self.events_content_type}
            body = sse(*self.events)
            if self.hold_stream:
                stream = HeldStream(body)
                self.streams.append(stream)
                return httpx.Response(self.events_status, headers=headers, stream=stream)
            return httpx.Response(self.events_status, headers=headers, content=body)
        return httpx.Response(404, text="not found")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, base_url: str = BASE_URL) -> MesheryClient:
        return MesheryClient(base_url, httpx.Client(transport=self.transport()))

    @property
    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]

    def operation_forms(self) -> list[dict[str, list[str]]]:
        """Decoded form bodies of every operation request, in order."""
        return [
            parse_qs(r.content.decode(), keep_blank_values=True)
            for r in self.requests
            if r.url.path == "/api/system/adapter/operation"
        ]


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test from an empty directory with no meshctl env overrides."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MESHCTL_CONFIG", raising=False)
    for name in ("SERVER__ENDPOINT", "SERVER__TOKEN_PATH", "VALIDATION__WATCH_TIMEOUT"):
        monkeypatch.delenv(f"MESHCTL_{name}", raising=False)


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Undo handler and level changes made by configure_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    meshctl_logger = logging.getLogger("meshctl")
    meshctl_level = meshctl_logger.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    meshctl_logger.setLevel(meshctl_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def client(server: FakeServer) -> Iterator[MesheryClient]:
    c = server.client()
    try:
        yield c
    finally:
        c.close()


@pytest.fixture
def cli_server(server: FakeServer, monkeypatch: pytest.MonkeyPatch) -> FakeServer:
    """Route every HTTP client the CLI builds to the fake server."""
    real_build = http_module.build_http_client

    def build(
        settings: Any, *, token_path: Path | None = None, transport: Any = None
    ) -> httpx.Client:
        return real_build(settings, token_path=token_path, transport=server.transport())

    monkeypatch.setattr(http_module, "build_http_client", build)
    return server
