"""JSON responses rendered with orjson.

``ORJSONResponse`` is the application's default response class. Records
sent by the generic controller are plain column maps, so datetimes, UUIDs
and Decimals show up routinely; orjson handles the first two natively and
the ``default`` hook covers the rest.
"""

from decimal import Decimal
from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.responses import Response

from crudkit.resources.contracts import Reply


def _default(value: Any) -> Any:  # noqa: ANN401 - orjson fallback hook
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


class ORJSONResponse(JSONResponse):
    """FastAPI Response class using orjson for JSON serialization.

    Attributes:
        media_type: The media type for the response.
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - accepts any JSON-serializable content
        """Render the content as JSON using orjson.

        Args:
            content: The content to serialize to JSON.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json")

        return orjson.dumps(content, default=_default, option=orjson.OPT_SORT_KEYS)


def reply_to_response(reply: Reply) -> Response:
    """Convert a controller reply into the HTTP response.

    A reply without a body (204 on update/delete) becomes an empty response.
    """
    if not reply.sent or reply.body is None:
        return Response(status_code=reply.status_code)
    return ORJSONResponse(status_code=reply.status_code, content=reply.body)
