"""Fal Gateway — serverless HTTP dispatcher in front of the Fal route groups.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
