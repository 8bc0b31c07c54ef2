"""Route Group Loader — imports handler-group modules by dotted path.

Invariants:
    - Importing happens inside the factory, so an ImportError surfaces as a
      RouteLoadFailed in the registry rather than at module import time
    - A group module exposes create_group() returning the handler callable
"""

import importlib
from typing import Any, Callable

from gateway.core.route_registry import DEFAULT_ROUTE_GROUPS

GROUP_FACTORY_ATTR = "create_group"


def import_group_factory(module_path: str) -> Callable[[], Any]:
    """Deferred factory: import module_path and call its create_group()."""

    def factory() -> Any:
        module = importlib.import_module(module_path)
        create = getattr(module, GROUP_FACTORY_ATTR, None)
        if create is None:
            raise AttributeError(
                f"module '{module_path}' has no attribute '{GROUP_FACTORY_ATTR}'",
            )
        return create()

    factory.__qualname__ = f"import_group_factory({module_path!r})"
    return factory


def default_group_factories(
    route_package: str,
) -> list[tuple[str, Callable[[], Any]]]:
    """(prefix, factory) pairs for the standard route groups."""
    return [
        (prefix, import_group_factory(f"{route_package}.{module}"))
        for prefix, module in DEFAULT_ROUTE_GROUPS
    ]
