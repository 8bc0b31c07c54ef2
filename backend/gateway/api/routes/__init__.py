"""Route Modules — one file per concern.

Invariants:
    - health is the only route the gateway owns; dispatch hands everything
      else to a route group
    - Explicit registration in pipeline.create_app (no auto-discovery)
"""
