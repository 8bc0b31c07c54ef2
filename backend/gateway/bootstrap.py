"""Bootstrap — turns Settings into the immutable GatewayConfig.

Invariants:
    - Route groups load here, once per execution context; failures are
      recorded in the registry and never raised
    - Explicit groups (tests, embedding) replace the configured route package
"""

import logging
from typing import Any, Callable, Iterable

from gateway.config import Settings
from gateway.core.gateway_config import GatewayConfig
from gateway.core.origin_policy import CorsPolicy, parse_origin_rules
from gateway.core.route_registry import RouteRegistry
from gateway.infrastructure.route_loader import default_group_factories

logger = logging.getLogger(__name__)


def build_cors_policy(settings: Settings) -> CorsPolicy:
    return CorsPolicy(
        rules=parse_origin_rules(settings.cors_origins),
        permissive_fallback=settings.cors_permissive_fallback,
    )


def build_gateway_config(
    settings: Settings,
    groups: Iterable[tuple[str, Callable[[], Any]]] | None = None,
) -> GatewayConfig:
    """Load route groups and freeze everything the pipeline reads."""
    if groups is None:
        groups = default_group_factories(settings.route_package)
    registry = RouteRegistry.build(groups)
    if registry.failed:
        logger.warning(
            f"{len(registry.failed)} route group(s) unavailable: "
            f"{', '.join(e.prefix for e in registry.failed)}",
        )
    return GatewayConfig(
        registry=registry,
        cors=build_cors_policy(settings),
        body_limit_bytes=settings.body_limit_bytes,
        debug=settings.is_development,
        environment=settings.environment,
        version=settings.app_version,
        service_message=settings.service_message,
    )
