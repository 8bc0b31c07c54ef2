"""Root conftest — shared test configuration."""

import os

# Tests build their own GatewayConfig; keep ambient settings predictable
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("LOG_FORMAT", "text")
