"""Infrastructure Layer — logging setup and route group imports.

Invariants:
    - Import errors from route group modules are surfaced as values, never raised
"""
