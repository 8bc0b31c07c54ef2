"""Error Hierarchy — typed, categorized exceptions for every gateway failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), http_status (int)
    - Client errors (400-level) are raised before any route group runs
    - to_response() produces the public envelope {success: false, message}
    - Diagnostic detail (error, stack) is added by the finalizer, never here

Design Decisions:
    - Single hierarchy with GatewayError base: one exception handler covers all
    - RouteLoadError is never raised past the registry; it travels inside
      RouteLoadFailed as the recorded reason
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """High-level error categories for logging and response shaping."""
    CLIENT_INPUT = "client_input"
    ROUTE_LOAD = "route_load"
    NOT_FOUND = "not_found"
    ADAPTER = "adapter"


class GatewayError(Exception):
    """Base exception for all gateway errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the public JSON error envelope."""
        return {"success": False, "message": self.message}


# ─── Client Errors (400-level) ──────────────────────────────────

class BadRequestError(GatewayError):
    """Request body could not be parsed."""
    def __init__(self, message: str = "Invalid request body"):
        super().__init__(
            message, "BAD_REQUEST", ErrorCategory.CLIENT_INPUT, 400,
        )


class PayloadTooLargeError(GatewayError):
    """Request body exceeds the configured ceiling."""
    def __init__(self, limit: int, received: int | None = None):
        super().__init__(
            "Request entity too large", "PAYLOAD_TOO_LARGE",
            ErrorCategory.CLIENT_INPUT, 413,
        )
        self.limit = limit
        self.received = received


class ClientDisconnectedError(GatewayError):
    """Client went away before the request body was fully received."""
    def __init__(self):
        super().__init__(
            "Client closed the request", "CLIENT_DISCONNECTED",
            ErrorCategory.CLIENT_INPUT, 400,
        )


class RouteNotFoundError(GatewayError):
    """No loaded route group matches the request path."""
    def __init__(self, path: str, method: str):
        super().__init__(
            "API route not found", "ROUTE_NOT_FOUND",
            ErrorCategory.NOT_FOUND, 404,
        )
        self.path = path
        self.method = method

    def to_response(self) -> dict:
        return {
            "success": False,
            "message": self.message,
            "path": self.path,
            "method": self.method,
        }


# ─── Server Errors (500-level) ──────────────────────────────────

class RouteLoadError(GatewayError):
    """A route group could not be imported or constructed."""
    def __init__(self, prefix: str, reason: str):
        super().__init__(
            f"Route group for {prefix} failed to load: {reason}",
            "ROUTE_LOAD_FAILED", ErrorCategory.ROUTE_LOAD, 500,
        )
        self.prefix = prefix
        self.reason = reason


class AdapterFailure(GatewayError):
    """The serverless adapter could not run the pipeline at all."""
    def __init__(self, detail: str = "Unknown error"):
        super().__init__(
            "Function execution error", "FUNCTION_EXECUTION_ERROR",
            ErrorCategory.ADAPTER, 500,
        )
        self.detail = detail
