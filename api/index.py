"""Vercel Serverless Function entry point.

Routes every request to the gateway; Vercel picks up the ASGI `app`,
Lambda-style runtimes use `handler`.
"""

import os
import sys

# Ensure the backend package is importable without an install step
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BACKEND_DIR = os.path.join(PROJECT_ROOT, "backend")

for p in [PROJECT_ROOT, BACKEND_DIR]:
    if p not in sys.path:
        sys.path.insert(0, p)

from gateway.main import app, handler  # noqa: E402, F401

__all__ = ["app", "handler"]
