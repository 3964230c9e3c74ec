"""Generic controller serving CRUD requests for any cataloged model.

The controller turns a ``ResourceRequest`` into exactly one store operation
and one reply write:

==========  ========  ===========================================
Method      Path id   Operation
==========  ========  ===========================================
GET         no        list (filters, sorting, pagination, DTO)
POST        ignored   create, 201
GET         yes       fetch one, 200
PUT         yes       replace (204) or create with that id (201)
PATCH       yes       merge onto the record, validate, 204
DELETE      yes       delete, 204
==========  ========  ===========================================

Branches signal failures by raising ``NotFoundError`` or
``ValidationError``; ``process`` converts them into the reply in one place.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger
from sqlalchemy import ColumnElement, or_

from crudkit.core.config import ApiConfig
from crudkit.core.exceptions import NotFoundError, ValidationError
from crudkit.core.observability import trace_operation
from crudkit.core.types import FieldMap, QueryItems, SortOptions
from crudkit.infrastructure.database.catalog import CatalogEntry, ModelCatalog
from crudkit.infrastructure.database.schema import FieldKind, record_to_dict
from crudkit.resources.contracts import (
    DtoCriteria,
    FilterCriteria,
    Processor,
    ProcessorCriteria,
    Reply,
    ResourceRequest,
    ValidationResult,
)
from crudkit.resources.registry import Registries


@dataclass(frozen=True, slots=True)
class Pagination:
    """Rows to fetch and rows to skip for one collection request."""

    take: int
    skip: int


def _parse_int(value: object) -> int | None:
    """Parse an integer the lenient way: ``"12"``, ``12.7`` and ``"12.7"`` all give 12."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        pass
    try:
        return int(float(str(value)))
    except (ValueError, OverflowError):
        return None


def _parse_float(value: object) -> float | None:
    if value is None:
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _parse_positive(value: str | None, default: int) -> int:
    """Parse a page/limit query value; anything unusable means the default."""
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed >= 1 else default


class GenericController(Processor):
    """Fallback processor for every model in the catalog.

    Args:
        catalog: Models exposed over HTTP.
        registries: Overrides consulted for filters, DTOs and validators.
        api_config: Page size defaults and cap.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        registries: Registries,
        api_config: ApiConfig | None = None,
    ) -> None:
        self.catalog = catalog
        self.registries = registries
        self.api_config = api_config or ApiConfig()

    def supports(self, criteria: ProcessorCriteria) -> bool:
        """Any cataloged model is supported."""
        return criteria.model in self.catalog

    async def process(self, model: str, request: ResourceRequest, reply: Reply) -> None:
        """Serve one request and write the outcome into ``reply``."""
        method = request.method.upper()
        with (
            trace_operation("crud.process", model=model, method=method) as span,
            logger.contextualize(model=model),
        ):
            try:
                entry = self.catalog.get(model)
                if entry is None:
                    raise NotFoundError(context={"model": model})
                await self._dispatch(entry, method, request, reply)
            except NotFoundError as exc:
                logger.debug("{} {} not found", method, model)
                reply.status(404).send({"message": exc.message})
            except ValidationError as exc:
                logger.info(
                    "{} {} rejected with {} error(s)", method, model, len(exc.errors)
                )
                reply.status(400).send({"errors": exc.errors})
            span.set_attribute("http.status_code", reply.status_code)

    async def _dispatch(
        self, entry: CatalogEntry, method: str, request: ResourceRequest, reply: Reply
    ) -> None:
        if method == "GET" and request.id is None:
            reply.status(200).send(await self.fetch_collection(entry, request))
            return

        if method == "POST":
            reply.status(201).send(await self.create_item(entry, request, request.body))
            return

        if request.id is None:
            raise NotFoundError

        entity_id = self._parse_identifier(entry, request.id)
        if entity_id is None:
            raise NotFoundError(context={"id": request.id})

        record = await self.fetch_item(entry, request, entity_id)
        if record is None and method != "PUT":
            raise NotFoundError(context={"id": request.id})

        repository = entry.repository(request.session)

        if method == "GET":
            reply.status(200).send(await self._map_record(entry.name, record))
            return

        if method == "PUT" and record is None:
            body = {**request.body, entry.descriptor.id_field.name: entity_id}
            reply.status(201).send(await self.create_item(entry, request, body))
            return

        if method == "PUT":
            result = self._require_valid(self.validate(request.body, entry.name))
            await repository.update(entity_id, result.data)
            reply.status(204)
            return

        if method == "PATCH":
            # Not atomic: a concurrent writer between read and update is lost.
            merged = {**record_to_dict(record), **request.body}
            result = self._require_valid(self.validate(merged, entry.name))
            await repository.update(entity_id, result.data)
            reply.status(204)
            return

        if method == "DELETE":
            await repository.delete(entity_id)
            reply.status(204)
            return

        raise NotFoundError

    async def fetch_collection(
        self, entry: CatalogEntry, request: ResourceRequest
    ) -> Any:  # noqa: ANN401 - DTO output
        """List records with custom filters, sorting and pagination applied."""
        query = request.query
        sorting = self.get_sorting_options(entry.name, query)
        pagination = self.set_pagination(query)
        where = self.get_custom_filters(entry, query)

        records = await entry.repository(request.session).find_many(
            where=where,
            order_by=sorting,
            skip=pagination.skip,
            limit=pagination.take,
        )
        return await self._map_records(entry.name, records)

    async def fetch_item(
        self, entry: CatalogEntry, request: ResourceRequest, entity_id: object
    ) -> Any:  # noqa: ANN401 - record of any model
        """Load one record, or None when it does not exist."""
        return await entry.repository(request.session).get_by_id(entity_id)

    async def create_item(
        self, entry: CatalogEntry, request: ResourceRequest, body: FieldMap
    ) -> Any:  # noqa: ANN401 - DTO output
        """Validate and insert a record, returning its response projection.

        Raises:
            ValidationError: If validation fails or the store rejects the insert.
        """
        result = self._require_valid(self.validate(body, entry.name))
        data = result.data

        id_name = entry.descriptor.id_field.name
        if body.get(id_name) is not None:
            entity_id = self._parse_identifier(entry, str(body[id_name]))
            if entity_id is not None:
                data[id_name] = entity_id

        record = await entry.repository(request.session).create(data)
        return await self._map_record(entry.name, record)

    def validate(self, data: FieldMap, model: str) -> ValidationResult:
        """Check required fields and coerce numeric values.

        A custom validator registered for the model takes over entirely.
        Otherwise only plain scalar fields are checked: identifier,
        default-valued and relationship fields are skipped, as are input keys
        that are not fields of the model.
        """
        validator = self.registries.validators.get_validation_for(model)
        if validator is not None:
            return validator.validate(data)

        errors: list[str] = []
        sanitized: FieldMap = {}
        for field in self.catalog[model].descriptor.fields:
            if field.is_id or field.has_default or field.kind is FieldKind.OBJECT:
                continue

            value = data.get(field.name)
            if value is None and field.is_required:
                errors.append(f"{field.name} is required")
                continue
            if field.name not in data:
                continue

            if field.type_name == "int":
                sanitized[field.name] = _parse_int(value)
            elif field.type_name == "float":
                sanitized[field.name] = _parse_float(value)
            else:
                sanitized[field.name] = value

        return ValidationResult(errors=errors, data=sanitized)

    def get_sorting_options(self, model: str, query: QueryItems) -> SortOptions:
        """Turn query keys naming fields into sort keys (``asc`` or ``desc``)."""
        field_names = self.catalog[model].descriptor.field_names
        return [
            (key, "asc" if value == "asc" else "desc")
            for key, value in query.items()
            if key in field_names
        ]

    def set_pagination(self, query: QueryItems) -> Pagination:
        """Compute take/skip from ``page`` and ``limit``.

        The fetch size is capped but the offset uses the requested size, so
        ``limit=100&page=2`` skips 100 rows and fetches 30.
        """
        page = _parse_positive(query.get("page"), 1)
        size = _parse_positive(query.get("limit"), self.api_config.default_page_size)
        return Pagination(
            take=min(size, self.api_config.max_page_size),
            skip=(page - 1) * size,
        )

    def get_custom_filters(
        self, entry: CatalogEntry, query: QueryItems
    ) -> ColumnElement[bool] | None:
        """OR together the predicates of every matching filter."""
        criteria = FilterCriteria(
            model=entry.name, query_items=query, model_class=entry.model_class
        )
        filters = self.registries.filters.get_filters_for(criteria)
        if not filters:
            return None

        logger.debug("Applying {} custom filter(s) to {}", len(filters), entry.name)
        return or_(*(query_filter.get_options(criteria) for query_filter in filters))

    async def _map_record(self, model: str, record: object) -> Any:  # noqa: ANN401
        mapper = self.registries.dtos.get_dto_for(DtoCriteria(model=model))
        if mapper is not None:
            return await mapper.to_dto(record)
        return record_to_dict(record)

    async def _map_records(self, model: str, records: Sequence[object]) -> Any:  # noqa: ANN401
        mapper = self.registries.dtos.get_dto_for(DtoCriteria(model=model))
        if mapper is not None:
            return await mapper.to_dto_list(records)
        return [record_to_dict(record) for record in records]

    @staticmethod
    def _require_valid(result: ValidationResult) -> ValidationResult:
        if result.errors:
            raise ValidationError(result.errors)
        return result

    @staticmethod
    def _parse_identifier(entry: CatalogEntry, raw_id: str) -> object | None:
        """Coerce the path id to the id field's type; None when impossible."""
        type_name = entry.descriptor.id_field.type_name
        try:
            if type_name == "int":
                return int(raw_id)
            if type_name == "float":
                return float(raw_id)
        except ValueError:
            return None
        return raw_id
