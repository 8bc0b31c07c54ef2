"""Health Probe — liveness endpoint served even when route groups fail to load.

Invariants:
    - GET /health always returns 200 if the function is up
    - Depends on nothing but the GatewayConfig (no route group, no body parsing)
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Liveness probe with deployment metadata."""
    config = request.app.state.gateway
    return {
        "status": "OK",
        "message": config.service_message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.environment,
        "version": config.version,
    }
