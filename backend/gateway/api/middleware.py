"""Pipeline Middleware — request logging and CORS header injection (pure ASGI).

Invariants:
    - RequestLoggingMiddleware is outermost: method and path are logged before
      anything else runs, so a later failure still leaves a trace
    - OriginPolicyMiddleware sets CORS headers on every http.response.start it
      forwards, overriding values set further in
    - OPTIONS is answered 200 with an empty body right after CORS injection;
      the normalizer and the route registry are never reached
"""

import logging
from datetime import datetime, timezone

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gateway.core.origin_policy import CorsPolicy

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            method, path = scope["method"], scope["path"]
            timestamp = datetime.now(timezone.utc).isoformat()
            logger.info(
                f"{timestamp} - {method} {path}",
                extra={"method": method, "path": path},
            )
        await self.app(scope, receive, send)


class OriginPolicyMiddleware:
    def __init__(self, app: ASGIApp, policy: CorsPolicy):
        self.app = app
        self.policy = policy

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        origin = Headers(scope=scope).get("origin")
        cors_headers = self.policy.headers_for(origin)

        if scope["method"] == "OPTIONS":
            await send_preflight(send, cors_headers)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                apply_headers(message, cors_headers)
            await send(message)

        await self.app(scope, receive, send_with_cors)


def apply_headers(message: Message, cors_headers: dict[str, str]) -> None:
    message.setdefault("headers", [])
    headers = MutableHeaders(scope=message)
    for name, value in cors_headers.items():
        if name == "Vary":
            if value.lower() not in headers.get("vary", "").lower():
                headers.add_vary_header(value)
        else:
            headers[name] = value


async def send_preflight(send: Send, cors_headers: dict[str, str]) -> None:
    """200, no body, CORS headers only."""
    start: Message = {
        "type": "http.response.start",
        "status": 200,
        "headers": [(b"content-length", b"0")],
    }
    apply_headers(start, cors_headers)
    await send(start)
    await send({"type": "http.response.body", "body": b""})
