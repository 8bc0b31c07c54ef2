"""Origin Policy — pure allow/deny decision and CORS header set for a request origin.

Invariants:
    - is_allowed never raises; it always returns a bool
    - No Origin header → allowed (mobile apps, curl, server-to-server)
    - Rule order never changes the outcome (union, first match suffices)
    - Wildcard rules are loose: the origin must start with the part before "*"
      and contain the part after it anywhere ("https://*.vercel.app" accepts
      "https://x.vercel.app" and also "https://x.vercel.app.other.com")
    - A denied origin never receives Access-Control-Allow-Origin unless the
      permissive fallback is switched on

Design Decisions:
    - OriginRule and CorsPolicy are frozen dataclasses built once at startup
    - Denial withholds headers only; the request itself is still served
"""

from dataclasses import dataclass

WILDCARD = "*"

DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:3002",
    "https://*.vercel.app",
    "https://*.vercel.com",
    "https://*.netlify.app",
    "https://*.netlify.com",
)

DEFAULT_ALLOW_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH")

DEFAULT_ALLOW_HEADERS = (
    "Content-Type",
    "Authorization",
    "X-Requested-With",
    "Accept",
    "Origin",
    "Access-Control-Request-Method",
    "Access-Control-Request-Headers",
)

DEFAULT_EXPOSE_HEADERS = ("Content-Length",)

ONE_DAY_SECONDS = 86400


@dataclass(frozen=True)
class OriginRule:
    """An exact origin, or a wildcard pattern such as https://*.vercel.app."""
    pattern: str

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in self.pattern

    def matches(self, origin: str) -> bool:
        if not self.is_wildcard:
            return origin == self.pattern
        head, _, tail = self.pattern.partition(WILDCARD)
        return origin.startswith(head) and tail in origin[len(head):]


def parse_origin_rules(patterns) -> tuple[OriginRule, ...]:
    """Build rules from configured strings, dropping blanks."""
    return tuple(
        OriginRule(p.strip()) for p in patterns if p and p.strip()
    )


def is_allowed(origin: str | None, rules) -> bool:
    """Decide whether a browser origin may read the response."""
    if not origin:
        return True
    return any(rule.matches(origin) for rule in rules)


@dataclass(frozen=True)
class CorsPolicy:
    """Allow-list plus the static CORS header values emitted on every response."""
    rules: tuple[OriginRule, ...] = parse_origin_rules(DEFAULT_ALLOWED_ORIGINS)
    allow_methods: tuple[str, ...] = DEFAULT_ALLOW_METHODS
    allow_headers: tuple[str, ...] = DEFAULT_ALLOW_HEADERS
    expose_headers: tuple[str, ...] = DEFAULT_EXPOSE_HEADERS
    allow_credentials: bool = True
    max_age: int = ONE_DAY_SECONDS
    permissive_fallback: bool = False

    def is_allowed(self, origin: str | None) -> bool:
        return is_allowed(origin, self.rules)

    def baseline_headers(self) -> dict[str, str]:
        """Headers that do not depend on the request origin."""
        headers = {
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
            "Access-Control-Max-Age": str(self.max_age),
        }
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        if self.expose_headers:
            headers["Access-Control-Expose-Headers"] = ", ".join(
                self.expose_headers,
            )
        return headers

    def headers_for(self, origin: str | None) -> dict[str, str]:
        """Full CORS header set for a request carrying this Origin (or none)."""
        headers = self.baseline_headers()
        if not origin:
            headers["Access-Control-Allow-Origin"] = WILDCARD
        elif self.is_allowed(origin):
            headers["Access-Control-Allow-Origin"] = origin
            headers["Vary"] = "Origin"
        elif self.permissive_fallback:
            headers["Access-Control-Allow-Origin"] = WILDCARD
        return headers
