"""Pydantic models documenting API response bodies.

- **errors**: The ``{"message"}`` and ``{"errors"}`` error bodies
"""
