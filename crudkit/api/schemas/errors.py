"""Error response schemas of the generated model routes.

The routes answer failures with one of two bodies:

- ``{"message": "..."}`` for not-found, unauthorized and unexpected errors
- ``{"errors": ["...", ...]}`` for validation and constraint failures

The models below document those shapes in the OpenAPI schema and are used
by the exception handlers to build the same bodies.
"""

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Single-message error body."""

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Not found", "Unauthorized"],
    )


class ErrorsResponse(BaseModel):
    """Validation error body with one message per offending field."""

    errors: list[str] = Field(
        ...,
        description="Ordered error messages",
        examples=[["name is required"], ["email already taken"]],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"errors": ["name is required", "price is required"]},
                {"errors": ["sku already taken"]},
                {"errors": ["Something went wrong."]},
            ]
        }
    }


ITEM_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorsResponse, "description": "Validation or constraint error"},
    404: {"model": MessageResponse, "description": "Record not found"},
}
"""OpenAPI ``responses`` entry shared by the generated routes."""
