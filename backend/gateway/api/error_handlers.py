"""Error Handlers — global exception handlers routed through the ResponseFinalizer.

Invariants:
    - GatewayError (BadRequest, PayloadTooLarge, ...) → finalizer.format_error
    - Starlette 404 → finalizer.format_not_found (same body as an unmatched
      prefix, path reported as the original URL with its query string)
    - Other HTTPException → finalizer.format_error with its status and detail
    - Exception (catch-all) → finalizer.format_error; diagnostics gated by debug
"""

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway.api.finalizer import ResponseFinalizer
from gateway.api.normalizer import original_url
from gateway.core.errors import GatewayError


def register_error_handlers(app: FastAPI, finalizer: ResponseFinalizer) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_gateway_error_handler(app, finalizer)
    _register_http_exception_handler(app, finalizer)
    _register_generic_error_handler(app, finalizer)


def _request_context(request: Request) -> dict:
    return {
        "origin": request.headers.get("origin"),
        "method": request.method,
        "url": str(request.url),
    }


def _register_gateway_error_handler(
    app: FastAPI, finalizer: ResponseFinalizer,
) -> None:

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        """Client-input and routing errors raised inside the pipeline."""
        return finalizer.format_error(exc, **_request_context(request))


def _register_http_exception_handler(
    app: FastAPI, finalizer: ResponseFinalizer,
) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException,
    ):
        """Framework-level HTTP errors (unmatched route, bad method)."""
        if exc.status_code == 404:
            return finalizer.format_not_found(
                original_url(request), request.method,
                origin=request.headers.get("origin"),
            )
        return finalizer.format_error(exc, **_request_context(request))


def _register_generic_error_handler(
    app: FastAPI, finalizer: ResponseFinalizer,
) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all for anything escaping the dispatch boundary."""
        return finalizer.format_error(exc, **_request_context(request))
