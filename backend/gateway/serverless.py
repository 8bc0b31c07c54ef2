"""Serverless Adapter — one platform invocation in, exactly one HTTP response out.

Invariants:
    - Baseline CORS headers are attached to every response; headers the
      pipeline already set take precedence
    - OPTIONS → 200 with empty body before the pipeline is even built
    - The pipeline app is built lazily, once, inside the failure boundary
    - Anything escaping the pipeline → 500 {success: false, message:
      "Function execution error"} if no response has started yet; the
      underlying detail is added as `error` only in debug mode
    - A response that has started is closed, never started twice
    - An exception raised after the response completed was already logged
      by the pipeline; it is not logged again as an error
    - Safe to reuse across warm invocations: holds only read-only state

Design Decisions:
    - Plain ASGI callable: Vercel serves it directly, Mangum wraps it for
      Lambda-style events (see main.py)
"""

import logging
from typing import Callable

from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gateway.api.middleware import send_preflight
from gateway.api.pipeline import create_app
from gateway.core.errors import AdapterFailure
from gateway.core.gateway_config import GatewayConfig

logger = logging.getLogger(__name__)


def apply_baseline(message: Message, baseline: dict[str, str]) -> None:
    message.setdefault("headers", [])
    headers = MutableHeaders(scope=message)
    for name, value in baseline.items():
        if name not in headers:
            headers[name] = value


class ServerlessAdapter:
    """ASGI entry point wrapping the dispatch pipeline for one GatewayConfig."""

    def __init__(
        self,
        config: GatewayConfig,
        app_factory: Callable[[GatewayConfig], ASGIApp] = create_app,
    ):
        self.config = config
        self._app_factory = app_factory
        self._app: ASGIApp | None = None

    @property
    def app(self) -> ASGIApp:
        if self._app is None:
            self._app = self._app_factory(self.config)
        return self._app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        origin = Headers(scope=scope).get("origin")
        baseline = self.config.cors.headers_for(origin)

        if scope["method"] == "OPTIONS":
            await send_preflight(send, baseline)
            return

        started = False
        completed = False

        async def send_with_baseline(message: Message) -> None:
            nonlocal started, completed
            if message["type"] == "http.response.start":
                if started:
                    logger.error("Pipeline tried to start a second response")
                    return
                started = True
                apply_baseline(message, baseline)
            elif message["type"] == "http.response.body":
                if completed:
                    return
                completed = not message.get("more_body", False)
            await send(message)

        try:
            await self.app(scope, receive, send_with_baseline)
        except Exception as e:
            if completed:
                # answered and logged by the pipeline's error handlers
                logger.debug(
                    f"Pipeline raised after completing its response: {e!r}",
                    extra={"method": scope["method"], "path": scope["path"]},
                )
                return
            logger.error(
                f"Function execution error: {e}",
                extra={"method": scope["method"], "path": scope["path"]},
                exc_info=True,
            )
            if started:
                # close the body already in flight
                await send_with_baseline(
                    {"type": "http.response.body", "body": b""},
                )
                return
            await self._send_failure(scope, receive, send_with_baseline, str(e))
            return

        if not started:
            logger.error(
                "Pipeline finished without a response",
                extra={"method": scope["method"], "path": scope["path"]},
            )
            await self._send_failure(
                scope, receive, send_with_baseline, "No response produced",
            )

    async def _send_failure(
        self, scope: Scope, receive: Receive, send: Send, detail: str,
    ) -> None:
        err = AdapterFailure(detail or "Unknown error")
        content = err.to_response()
        if self.config.debug:
            content["error"] = err.detail
        response = JSONResponse(status_code=err.http_status, content=content)
        await response(scope, receive, send)
