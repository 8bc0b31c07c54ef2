"""Gateway Config — the immutable object every request is served against.

Invariants:
    - Built once per execution context, never mutated afterwards
    - Passed explicitly to create_app / ServerlessAdapter (no module singletons)
    - Holds everything the pipeline reads: CORS policy, route table, body
      ceiling, diagnostics flag, health metadata
"""

from dataclasses import dataclass, field

from gateway.core.origin_policy import CorsPolicy
from gateway.core.route_registry import RouteRegistry


@dataclass(frozen=True)
class GatewayConfig:
    registry: RouteRegistry
    cors: CorsPolicy = field(default_factory=CorsPolicy)
    body_limit_bytes: int = 50 * 1024 * 1024
    debug: bool = False
    environment: str = "production"
    version: str = "1.0.0"
    service_message: str = "Fal Platform Backend is running"
