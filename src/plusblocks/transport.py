"""Streamable HTTP transport for the MCP server.

The ASGI app FastMCP builds (MCP endpoint at /mcp, plus /health) is wrapped
in MCPSecurityMiddleware and served by uvicorn.
"""

from __future__ import annotations

import re
import secrets
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.datastructures import Headers
from starlette.responses import Response

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP
    from starlette.types import ASGIApp, Receive, Scope, Send

    from plusblocks.config import Settings

log = structlog.get_logger()

SUPPORTED_PROTOCOL_VERSIONS: frozenset[str] = frozenset({"2025-11-25", "2025-06-18", "2025-03-26"})
# Liveness probes must work without the bearer key
PUBLIC_PATHS: frozenset[str] = frozenset({"/health"})
_LOCALHOST_ORIGIN = re.compile(r"^https?://(localhost|127\.0\.0\.1|\[::1\])(:\d+)?$")


class MCPSecurityMiddleware:
    """Pure ASGI middleware guarding the HTTP transport.

    Checks, in order, on every HTTP request:
    1. Bearer key, when auth is enabled (skipped for PUBLIC_PATHS).
    2. Origin header, which must be a localhost origin when present.
    3. MCP-Protocol-Version header, which must be a supported version when present.

    Pure ASGI rather than BaseHTTPMiddleware so streamed responses pass
    through unbuffered.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        auth_enabled: bool,
        auth_key: str | None = None,
    ) -> None:
        self.app = app
        self.auth_enabled = auth_enabled
        self.auth_key = auth_key

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        rejection = self._check(scope.get("path", ""), headers)
        if rejection is not None:
            await rejection(scope, receive, send)
            return

        await self.app(scope, receive, send)

    def _check(self, path: str, headers: Headers) -> Response | None:
        if self.auth_enabled and path not in PUBLIC_PATHS:
            supplied = headers.get("authorization", "")
            expected = f"Bearer {self.auth_key}"
            if not self.auth_key or not secrets.compare_digest(supplied, expected):
                return Response("Unauthorized", status_code=401)

        origin = headers.get("origin", "")
        if origin and not _LOCALHOST_ORIGIN.match(origin):
            return Response("Forbidden", status_code=403)

        proto_version = headers.get("mcp-protocol-version", "")
        if proto_version and proto_version not in SUPPORTED_PROTOCOL_VERSIONS:
            return Response(f"Unsupported protocol version: {proto_version}", status_code=400)

        return None


def run_http_server(mcp: FastMCP, settings: Settings) -> None:
    """Serve ``mcp`` over Streamable HTTP on the configured host and port."""
    http_log = log.bind(transport="http")

    auth_key: str | None = settings.server.auth_key or None
    if settings.server.auth_enabled and not auth_key:
        auth_key = secrets.token_urlsafe(32)
        http_log.warning("http_auth_key_auto_generated", auth_key=auth_key)
    if not settings.server.auth_enabled:
        http_log.warning("http_auth_disabled")

    secured_app = MCPSecurityMiddleware(
        mcp.streamable_http_app(),
        auth_enabled=settings.server.auth_enabled,
        auth_key=auth_key,
    )

    base = f"http://{settings.server.host}:{settings.server.port}"
    http_log.info("http_server_listening", mcp_endpoint=f"{base}/mcp", health=f"{base}/health")
    uvicorn.run(
        secured_app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # structlog handles logging
    )
