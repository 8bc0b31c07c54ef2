"""Fal Gateway — serverless entry point.

Invariants:
    - Everything below runs once per execution context (cold start); warm
      invocations reuse app and handler
    - app is the ASGI callable (Vercel, uvicorn); handler is the Mangum wrapper
      for Lambda-style events
    - Route groups that fail to import leave their prefix at 404; the module
      still imports and /health still answers
"""

from mangum import Mangum

from gateway.bootstrap import build_gateway_config
from gateway.config import get_settings
from gateway.infrastructure.observability import setup_logging
from gateway.serverless import ServerlessAdapter

settings = get_settings()
setup_logging(settings.log_level, settings.log_format)

app = ServerlessAdapter(build_gateway_config(settings))
handler = Mangum(app, lifespan="off")
