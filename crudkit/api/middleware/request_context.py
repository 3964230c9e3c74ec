"""Request context middleware: correlation and request IDs.

Each request gets a correlation ID (taken from ``X-Correlation-ID`` when the
caller sends one) and a fresh request ID. Both are stored in contextvars,
bound to every loguru record emitted while the request is served, and
echoed back as response headers.
"""

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from crudkit.api.constants import CORRELATION_ID_HEADER, REQUEST_ID_HEADER
from crudkit.core.context import (
    RequestContext,
    generate_correlation_id,
    generate_request_id,
)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Sets the request-scoped IDs and adds them to the response headers."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process the request with context management.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: Response with correlation and request ID headers.
        """
        correlation_id = (
            request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        )
        request_id = generate_request_id()

        RequestContext.set_correlation_id(correlation_id)
        RequestContext.set_request_id(request_id)

        try:
            with logger.contextualize(
                correlation_id=correlation_id, request_id=request_id
            ):
                response = await call_next(request)
                response.headers[CORRELATION_ID_HEADER] = correlation_id
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
        finally:
            RequestContext.clear()
