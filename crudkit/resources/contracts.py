"""Request/reply types and capability interfaces of the generic controller.

Call sites customize behavior per model by implementing one of the abstract
capabilities below and registering it at startup:

- ``Processor``: fully replaces the generic controller for matching requests
- ``Filter``: contributes a predicate to collection queries
- ``DtoMapper``: projects records before they are sent
- ``Validator``: replaces schema-derived validation for one model

Each capability decides whether it applies through ``supports(criteria)``;
registries scan them in registration order.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from sqlalchemy import ColumnElement
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from crudkit.core.types import FieldMap, JsonValue, QueryItems


@dataclass(frozen=True, slots=True)
class ResourceRequest:
    """The parts of an HTTP request the controller works with.

    Attributes:
        method: Upper-case HTTP method.
        id: Raw identifier from the path, None on collection routes.
        body: Decoded JSON object body, empty when none was sent.
        query: Query-string parameters.
        session: Request-scoped database session.
        http_request: The underlying Starlette request (headers, auth state).
    """

    method: str
    session: AsyncSession
    id: str | None = None
    body: FieldMap = field(default_factory=dict)
    query: QueryItems = field(default_factory=dict)
    http_request: Request | None = None


class Reply:
    """Status-then-send response sink.

    ``status`` may be chained into ``send``. Every call overwrites the
    previous value, so the last write wins. A reply that was never sent a
    body becomes an empty response.
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.body: JsonValue | Any = None
        self.sent = False

    def status(self, code: int) -> "Reply":
        """Set the status code."""
        self.status_code = code
        return self

    def send(self, body: JsonValue | Any = None) -> None:  # noqa: ANN401 - DTO output
        """Set the response body."""
        self.body = body
        self.sent = True

    def __repr__(self) -> str:
        return f"Reply(status_code={self.status_code}, sent={self.sent})"


@dataclass(slots=True)
class ValidationResult:
    """Outcome of validating submitted data against a model."""

    errors: list[str] = field(default_factory=list)
    data: FieldMap = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """True when no error was collected."""
        return not self.errors


@dataclass(frozen=True, slots=True)
class ProcessorCriteria:
    """What a processor is asked to handle."""

    model: str
    request: ResourceRequest


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """What a filter is asked to narrow down."""

    model: str
    query_items: QueryItems
    model_class: type[Any] | None = None


@dataclass(frozen=True, slots=True)
class DtoCriteria:
    """Which model's records are about to be sent."""

    model: str


class Processor(ABC):
    """Handles a request end to end in place of the generic controller."""

    @abstractmethod
    def supports(self, criteria: ProcessorCriteria) -> bool:
        """Whether this processor handles the given model and request."""

    @abstractmethod
    async def process(self, model: str, request: ResourceRequest, reply: Reply) -> None:
        """Serve the request, writing the outcome into ``reply``."""


class Filter(ABC):
    """Contributes a predicate to collection queries.

    Predicates of all filters that support a request are combined with OR.
    """

    @abstractmethod
    def supports(self, criteria: FilterCriteria) -> bool:
        """Whether this filter applies to the model and query items."""

    @abstractmethod
    def get_options(self, criteria: FilterCriteria) -> ColumnElement[bool]:
        """Build the predicate for the given query items."""


class DtoMapper(ABC):
    """Projects persisted records into response bodies."""

    @abstractmethod
    def supports(self, criteria: DtoCriteria) -> bool:
        """Whether this mapper projects records of the model."""

    @abstractmethod
    async def to_dto(self, record: Any) -> Any:  # noqa: ANN401 - record of any model
        """Project one record."""

    async def to_dto_list(self, records: Sequence[Any]) -> Any:  # noqa: ANN401
        """Project a list of records, one by one by default."""
        return [await self.to_dto(record) for record in records]


class ModelDto(DtoMapper):
    """DTO mapper bound to exactly one model name.

    Example:
        class PublicUserDto(ModelDto):
            model = "User"

            async def to_dto(self, record):
                return {"id": record.id, "name": record.name}
    """

    model: str = ""

    def supports(self, criteria: DtoCriteria) -> bool:
        """Match the model name exactly."""
        return criteria.model == self.model


class Validator(ABC):
    """Replaces schema-derived validation for the model named ``model``."""

    model: str = ""

    @abstractmethod
    def validate(self, data: FieldMap) -> ValidationResult:
        """Validate and sanitize submitted data."""


class RouteMethod(Enum):
    """Operation kinds an access rule can allow."""

    GET = "get"
    GET_ITEM = "get_item"
    GET_COLLECTION = "get_collection"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    ALL = "all"
    NONE = "none"


# Pre-request hooks are FastAPI dependencies: they may read the request,
# raise to reject it, or stash state for the handler.
RequestHook: TypeAlias = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class AccessRule:
    """Allowed operations and pre-request hooks for one model.

    Methods may be given as ``RouteMethod`` members or their string values.
    """

    model: str
    methods: frozenset[RouteMethod]
    on_request_hooks: tuple[RequestHook, ...] = ()

    def __init__(
        self,
        model: str,
        methods: Iterable[RouteMethod | str],
        on_request_hooks: Iterable[RequestHook] = (),
    ) -> None:
        object.__setattr__(self, "model", model)
        object.__setattr__(
            self, "methods", frozenset(RouteMethod(method) for method in methods)
        )
        object.__setattr__(self, "on_request_hooks", tuple(on_request_hooks))
