"""Utility modules for API-specific functionality.

- **responses**: orjson response class and reply-to-response conversion
"""
