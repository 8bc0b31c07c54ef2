"""Route Registry — ordered prefix → handler group table with graceful degradation.

Invariants:
    - Each group is loaded independently; a failing factory is logged and
      recorded as loaded=False, the remaining groups still load
    - loaded=False is permanent: no retry, no background reload
    - dispatch() only considers loaded entries, so an unloaded prefix behaves
      exactly like an unregistered path (404, never 5xx)
    - A prefix matches on a path-segment boundary: "/api/fortune" matches
      "/api/fortune" and "/api/fortune/today", never "/api/fortune-limits"
    - Longest matching prefix wins; registration order breaks ties
    - Once frozen, the table is read-only and safe to share across invocations
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from gateway.core.errors import RouteLoadError
from gateway.core.outcomes import RouteLoaded, RouteLoadFailed, RouteLoadResult

logger = logging.getLogger(__name__)

# (prefix, module name inside the route package)
DEFAULT_ROUTE_GROUPS: tuple[tuple[str, str], ...] = (
    ("/api/auth", "auth"),
    ("/api/user", "user"),
    ("/api/coins", "coins"),
    ("/api/rituals", "rituals"),
    ("/api/ai-chat", "ai_chat"),
    ("/api/fortune", "fortune"),
    ("/api/notifications", "notifications"),
    ("/api/fortune-limits", "fortune_limits"),
    ("/api/admin", "admin"),
)


@dataclass(frozen=True)
class RouteGroupEntry:
    prefix: str
    handler: Any
    loaded: bool
    reason: str | None = None


def normalize_prefix(prefix: str) -> str:
    """Leading slash, no trailing slash ("/" stays "/")."""
    return "/" + prefix.strip().strip("/")


def prefix_matches(prefix: str, path: str) -> bool:
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix + "/")


def load_route_group(prefix: str, factory: Callable[[], Any]) -> RouteLoadResult:
    """Run one group factory and capture the outcome instead of raising."""
    try:
        handler = factory()
    except Exception as e:
        return RouteLoadFailed(prefix, f"{type(e).__name__}: {e}", e)
    if handler is None or not callable(handler):
        return RouteLoadFailed(prefix, "factory did not return a callable handler")
    return RouteLoaded(prefix, handler)


class RouteRegistry:
    """Prefix table built once at startup, then frozen."""

    def __init__(self):
        self._entries: list[RouteGroupEntry] = []
        self._frozen = False

    @classmethod
    def build(
        cls, groups: Iterable[tuple[str, Callable[[], Any]]],
    ) -> "RouteRegistry":
        """Register every (prefix, factory) pair in order and freeze."""
        registry = cls()
        for prefix, factory in groups:
            registry.register(prefix, factory)
        registry.freeze()
        return registry

    def register(self, prefix: str, factory: Callable[[], Any]) -> RouteGroupEntry:
        if self._frozen:
            raise RuntimeError("Route registry is frozen")
        prefix = normalize_prefix(prefix)
        result = load_route_group(prefix, factory)
        if isinstance(result, RouteLoaded):
            entry = RouteGroupEntry(prefix, result.handler, loaded=True)
            logger.info(f"Route group mounted at {prefix}", extra={"prefix": prefix})
        else:
            error = RouteLoadError(prefix, result.reason)
            logger.error(
                error.message,
                extra={"prefix": prefix, "error_code": error.code},
                exc_info=result.error,
            )
            entry = RouteGroupEntry(prefix, None, loaded=False, reason=result.reason)
        self._entries.append(entry)
        return entry

    def freeze(self) -> None:
        self._frozen = True

    @property
    def entries(self) -> tuple[RouteGroupEntry, ...]:
        return tuple(self._entries)

    @property
    def loaded_prefixes(self) -> tuple[str, ...]:
        return tuple(e.prefix for e in self._entries if e.loaded)

    @property
    def failed(self) -> tuple[RouteGroupEntry, ...]:
        return tuple(e for e in self._entries if not e.loaded)

    def match(self, path: str) -> RouteGroupEntry | None:
        """Longest loaded prefix matching the path, or None."""
        best: RouteGroupEntry | None = None
        for entry in self._entries:
            if not entry.loaded or not prefix_matches(entry.prefix, path):
                continue
            if best is None or len(entry.prefix) > len(best.prefix):
                best = entry
        return best

    def dispatch(self, path: str, method: str) -> Any | None:
        """Handler group owning this path; method is not inspected here."""
        entry = self.match(path)
        return entry.handler if entry else None
