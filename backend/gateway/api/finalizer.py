"""Response Finalizer — the single place failure and 404 responses are shaped.

Invariants:
    - Every body has success=false and a human-readable message
    - Status: declared status (http_status | status_code | status, 400–599) else 500
    - error/stack diagnostics only when debug (development) is on
    - Every response carries the request's CORS headers; finalization never strips them
    - 404 body echoes the requested path and method
"""

import logging
import traceback
from datetime import datetime, timezone

from fastapi.responses import JSONResponse

from gateway.core.errors import GatewayError, RouteNotFoundError
from gateway.core.origin_policy import CorsPolicy

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Internal server error"
_STATUS_ATTRS = ("http_status", "status_code", "status")


def declared_status(err: BaseException) -> int:
    """Status the error asks for, if it is a valid error status."""
    for attr in _STATUS_ATTRS:
        value = getattr(err, attr, None)
        if isinstance(value, bool) or not isinstance(value, int):
            continue
        if 400 <= value <= 599:
            return value
    return 500


def error_message(err: BaseException) -> str:
    if isinstance(err, GatewayError):
        return err.message
    detail = getattr(err, "detail", None)
    if isinstance(detail, str) and detail:
        return detail
    return str(err) or DEFAULT_ERROR_MESSAGE


def format_stack(err: BaseException) -> str:
    return "".join(
        traceback.format_exception(type(err), err, err.__traceback__),
    )


class ResponseFinalizer:
    """Shapes terminal responses for one CORS policy and diagnostics mode."""

    def __init__(self, cors: CorsPolicy, debug: bool = False):
        self.cors = cors
        self.debug = debug

    def format_error(
        self,
        err: BaseException,
        *,
        origin: str | None = None,
        method: str = "",
        url: str = "",
    ) -> JSONResponse:
        status_code = declared_status(err)
        message = error_message(err)
        self._log_failure(err, status_code, message, method, url)
        if isinstance(err, GatewayError):
            content = err.to_response()
        else:
            content = {"success": False, "message": message}
        if self.debug:
            content["error"] = message
            content["stack"] = format_stack(err)
        return JSONResponse(
            status_code=status_code,
            content=content,
            headers=self.cors.headers_for(origin),
        )

    def format_not_found(
        self, path: str, method: str, *, origin: str | None = None,
    ) -> JSONResponse:
        err = RouteNotFoundError(path, method)
        return JSONResponse(
            status_code=err.http_status,
            content=err.to_response(),
            headers=self.cors.headers_for(origin),
        )

    def _log_failure(
        self, err: BaseException, status_code: int, message: str,
        method: str, url: str,
    ) -> None:
        extra = {
            "method": method,
            "url": url,
            "status_code": status_code,
            "error_code": getattr(err, "code", None),
        }
        timestamp = datetime.now(timezone.utc).isoformat()
        if status_code >= 500:
            logger.error(
                f"API Error: {message} ({method} {url} at {timestamp})",
                extra=extra, exc_info=err,
            )
        else:
            logger.warning(
                f"API Error: {message} ({method} {url} at {timestamp})",
                extra=extra,
            )
