"""API Layer — FastAPI pipeline, middleware, finalizer and error handlers.

Invariants:
    - Routes registered explicitly in pipeline.create_app (no auto-discovery)
    - All failure responses are JSON shaped by the ResponseFinalizer
"""
