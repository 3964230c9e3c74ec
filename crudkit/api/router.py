"""Route generation for every model in the catalog.

For each model, up to six routes are bound under ``{prefix}/{model}``:

=================  ======  ====================
Shape              Method  Path
=================  ======  ====================
post               POST    /{model}
get_collection     GET     /{model}
get_item           GET     /{model}/{id}
put                PUT     /{model}/{id}
patch              PATCH   /{model}/{id}
delete             DELETE  /{model}/{id}
=================  ======  ====================

Access rules decide which shapes are bound and which pre-request hooks
(FastAPI dependencies) run in front of each one. At request time a
registered processor takes the request if it supports it; otherwise the
generic controller does.
"""

from typing import Final

import orjson
from fastapi import APIRouter, Depends, Request
from loguru import logger
from starlette.responses import Response

from crudkit.api.constants import ITEM_ID_PARAM, REQUEST_BODY_METHODS
from crudkit.api.schemas.errors import ITEM_ERROR_RESPONSES
from crudkit.api.utils.responses import reply_to_response
from crudkit.core.exceptions import ValidationError
from crudkit.core.types import FieldMap
from crudkit.infrastructure.database import DatabaseSession, ModelCatalog
from crudkit.resources.access import ROUTE_SHAPES, hooks_for, should_add_route
from crudkit.resources.contracts import (
    Processor,
    ProcessorCriteria,
    Reply,
    ResourceRequest,
    RouteMethod,
)
from crudkit.resources.registry import Registries

INVALID_JSON_MESSAGE: Final = "Request body is not valid JSON"
NOT_AN_OBJECT_MESSAGE: Final = "Request body must be a JSON object"

_SHAPE_METHODS: Final[dict[RouteMethod, tuple[str, bool]]] = {
    RouteMethod.POST: ("POST", False),
    RouteMethod.GET_COLLECTION: ("GET", False),
    RouteMethod.GET_ITEM: ("GET", True),
    RouteMethod.PUT: ("PUT", True),
    RouteMethod.PATCH: ("PATCH", True),
    RouteMethod.DELETE: ("DELETE", True),
}

_SHAPE_STATUS: Final[dict[RouteMethod, int]] = {
    RouteMethod.POST: 201,
    RouteMethod.PUT: 204,
    RouteMethod.PATCH: 204,
    RouteMethod.DELETE: 204,
}


async def build_resource_request(
    request: Request, session: DatabaseSession, entity_id: str | None
) -> ResourceRequest:
    """Collect what the controller needs from the HTTP request.

    Raises:
        ValidationError: If a body was sent that is not a JSON object.
    """
    body: FieldMap = {}
    if request.method in REQUEST_BODY_METHODS:
        raw = await request.body()
        if raw.strip():
            try:
                decoded = orjson.loads(raw)
            except orjson.JSONDecodeError as exc:
                raise ValidationError([INVALID_JSON_MESSAGE], cause=exc) from exc
            if not isinstance(decoded, dict):
                raise ValidationError([NOT_AN_OBJECT_MESSAGE])
            body = decoded

    return ResourceRequest(
        method=request.method,
        session=session,
        id=entity_id,
        body=body,
        query=dict(request.query_params),
        http_request=request,
    )


class ModelRouter:
    """Builds the ``APIRouter`` exposing the cataloged models.

    Args:
        catalog: Models to expose.
        registries: Processors and access rules consulted per model.
        controller: Fallback processor, normally the generic controller.
        prefix: Path prefix of every generated route.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        registries: Registries,
        controller: Processor,
        prefix: str = "/api",
    ) -> None:
        self.catalog = catalog
        self.registries = registries
        self.controller = controller
        self.prefix = prefix

    def build(self) -> APIRouter:
        """Bind the allowed routes of every model."""
        router = APIRouter(prefix=self.prefix)
        for entry in self.catalog:
            self._add_model_routes(router, entry.name)
        return router

    def _add_model_routes(self, router: APIRouter, model: str) -> None:
        rules = self.registries.access.get_access_rules_for(model)
        path = f"/{model.lower()}"

        bound = []
        for shape in ROUTE_SHAPES:
            if not should_add_route(rules, shape):
                continue

            method, is_item = _SHAPE_METHODS[shape]
            hooks = hooks_for(rules, shape)
            router.add_api_route(
                f"{path}/{{{ITEM_ID_PARAM}}}" if is_item else path,
                self._item_endpoint(model) if is_item else self._collection_endpoint(model),
                methods=[method],
                name=f"{model.lower()}_{shape.value}",
                tags=[model],
                status_code=_SHAPE_STATUS.get(shape, 200),
                responses=ITEM_ERROR_RESPONSES,
                dependencies=[Depends(hook) for hook in hooks],
                response_model=None,
            )
            bound.append(shape.value)

        if bound:
            logger.info("Bound routes for {} at {}{}: {}", model, self.prefix, path, bound)
        else:
            logger.info("No routes bound for {}", model)

    def _collection_endpoint(self, model: str):  # noqa: ANN202 - FastAPI endpoint
        async def collection_endpoint(
            request: Request, session: DatabaseSession
        ) -> Response:
            return await self.dispatch(model, request, session, None)

        return collection_endpoint

    def _item_endpoint(self, model: str):  # noqa: ANN202 - FastAPI endpoint
        async def item_endpoint(
            id: str,  # noqa: A002 - path parameter name
            request: Request,
            session: DatabaseSession,
        ) -> Response:
            return await self.dispatch(model, request, session, id)

        return item_endpoint

    async def dispatch(
        self,
        model: str,
        request: Request,
        session: DatabaseSession,
        entity_id: str | None,
    ) -> Response:
        """Serve one request through a registered processor or the controller."""
        resource_request = await build_resource_request(request, session, entity_id)
        criteria = ProcessorCriteria(model=model, request=resource_request)
        processor = self.registries.processors.get_processor_for(criteria)
        if processor is None:
            processor = self.controller
        else:
            logger.debug("Request for {} handled by {}", model, type(processor).__name__)

        reply = Reply()
        await processor.process(model, resource_request, reply)
        return reply_to_response(reply)
