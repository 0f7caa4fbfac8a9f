"""httpx client construction and auth token loading."""

from __future__ import annotations

import json
from pathlib import Path

import httpx

from meshctl import __version__
from meshctl.config.models import ServerConfig
from meshctl.domain.errors import TokenError

TOKEN_COOKIE = "token"
PROVIDER_COOKIE = "meshery-provider"


def load_token(path: Path) -> dict[str, str]:
    """Read a token file and return the cookies it grants.

    The file is JSON with a ``token`` key and an optional
    ``meshery-provider`` key, as written by the server's token download.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TokenError(f"Cannot read token file {path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise TokenError(f"Token file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict) or not data.get(TOKEN_COOKIE):
        raise TokenError(f"Token file {path} has no '{TOKEN_COOKIE}' entry")

    cookies = {TOKEN_COOKIE: str(data[TOKEN_COOKIE])}
    provider = data.get(PROVIDER_COOKIE)
    if provider:
        cookies[PROVIDER_COOKIE] = str(provider)
    return cookies


def build_http_client(
    server: ServerConfig,
    *,
    token_path: Path | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create an ``httpx.Client`` with meshctl defaults.

    Args:
        server: ``[server]`` settings (timeout, default token path).
        token_path: Overrides ``server.token_path`` when given.
        transport: Custom transport, used by tests to fake the server.
    """
    path = token_path or server.token_path
    cookies = load_token(path) if path else None
    return httpx.Client(
        timeout=httpx.Timeout(server.request_timeout),
        headers={"User-Agent": f"meshctl/{__version__}"},
        cookies=cookies,
        follow_redirects=True,
        transport=transport,
    )
