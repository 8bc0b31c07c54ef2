"""Dispatch Pipeline — builds the FastAPI app that serves one GatewayConfig.

Invariants:
    - Chain: logging → CORS injection (OPTIONS answered here) → body
      normalization → prefix match → route group | 404
    - The config is attached to app.state and never mutated
    - /health is registered before the catch-all dispatch route
    - Every failure path ends in the ResponseFinalizer
"""

from fastapi import FastAPI

from gateway.api.error_handlers import register_error_handlers
from gateway.api.finalizer import ResponseFinalizer
from gateway.api.middleware import OriginPolicyMiddleware, RequestLoggingMiddleware
from gateway.api.routes import dispatch, health
from gateway.core.gateway_config import GatewayConfig


def create_app(config: GatewayConfig) -> FastAPI:
    """Wire middleware, routes and error handlers around one config."""
    app = FastAPI(
        title="Fal Gateway",
        version=config.version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    finalizer = ResponseFinalizer(config.cors, debug=config.debug)
    app.state.gateway = config
    app.state.finalizer = finalizer

    # add_middleware prepends: the last one added runs first
    app.add_middleware(OriginPolicyMiddleware, policy=config.cors)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router)
    app.include_router(dispatch.router)

    register_error_handlers(app, finalizer)
    return app
