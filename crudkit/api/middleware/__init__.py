"""FastAPI middleware for cross-cutting request/response concerns.

- **RequestContextMiddleware**: Correlation and request IDs
- **RequestLoggingMiddleware**: Request logging with timing
- **error_handler**: Exception handlers rendering ``{message}``/``{errors}``

Middleware run in reverse order of registration: request context first,
then request logging.
"""
