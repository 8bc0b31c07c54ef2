"""Core — pure policy and routing logic, no framework imports except errors.

Invariants:
    - Nothing here performs IO or imports FastAPI/Starlette
"""
