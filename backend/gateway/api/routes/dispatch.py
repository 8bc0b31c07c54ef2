"""Prefix Dispatch — catch-all route handing each request to its route group.

Invariants:
    - Order per request: normalize body → match prefix → invoke group | 404
    - Registered last, so /health and any explicit route take precedence
    - A route group exception never escapes: invoke_group returns HandlerFailed
      and the finalizer shapes the response
    - Exactly one response per request: the group's, the finalizer's error, or 404
"""

import inspect
import logging

from fastapi import APIRouter, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from gateway.api.normalizer import NormalizedRequest, normalize_request
from gateway.core.outcomes import HandlerFailed, HandlerOutcome, HandlerSucceeded

logger = logging.getLogger(__name__)
router = APIRouter(tags=["dispatch"])

DISPATCH_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def _is_async_handler(handler) -> bool:
    return inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None),
    )


def render_result(result) -> Response:
    """Route groups may return a Response, a JSON-able value, or None (204)."""
    if isinstance(result, Response):
        return result
    if result is None:
        return Response(status_code=204)
    return JSONResponse(content=jsonable_encoder(result))


async def invoke_group(handler, request: NormalizedRequest) -> HandlerOutcome:
    """Run a route group and capture raised failures as HandlerFailed."""
    try:
        if _is_async_handler(handler):
            result = await handler(request)
        else:
            result = await run_in_threadpool(handler, request)
            if inspect.isawaitable(result):
                result = await result
        return HandlerSucceeded(render_result(result))
    except Exception as e:
        return HandlerFailed(e)


@router.api_route("/{full_path:path}", methods=DISPATCH_METHODS)
async def dispatch(request: Request, full_path: str):
    """Everything that is not /health lands here."""
    state = request.app.state
    config, finalizer = state.gateway, state.finalizer
    origin = request.headers.get("origin")

    normalized = await normalize_request(request, config.body_limit_bytes)

    entry = config.registry.match(normalized.path)
    if entry is None:
        return finalizer.format_not_found(
            normalized.original_url, normalized.method, origin=origin,
        )

    outcome = await invoke_group(entry.handler, normalized.mounted_at(entry.prefix))
    if isinstance(outcome, HandlerFailed):
        return finalizer.format_error(
            outcome.error, origin=origin,
            method=normalized.method, url=normalized.original_url,
        )
    return outcome.response
