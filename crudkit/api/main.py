"""FastAPI application factory.

``create_app`` wires the whole service:

- logging and tracing setup
- exception handlers, then middleware (executed in reverse order of
  registration)
- the health endpoint
- the generated model routes, built from a ``ModelCatalog`` and the
  ``Registries`` holding the call site's overrides

Without an explicit catalog, the module named by
``API_CONFIG__MODELS_MODULE`` is imported and every model mapped on
``Base`` is exposed.
"""

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger

from crudkit.api.middleware.error_handler import register_exception_handlers
from crudkit.api.middleware.request_context import RequestContextMiddleware
from crudkit.api.middleware.request_logging import RequestLoggingMiddleware
from crudkit.api.router import ModelRouter
from crudkit.api.utils.responses import ORJSONResponse
from crudkit.core.config import Settings, get_settings
from crudkit.core.logging import setup_logging
from crudkit.core.observability import instrument_app, setup_tracing
from crudkit.infrastructure.database import Base, ModelCatalog
from crudkit.infrastructure.database.session import (
    check_database_connection,
    close_database,
)
from crudkit.resources import GenericController, Registries


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Raises:
        RuntimeError: If database connection fails during startup.
    """
    is_healthy, error_msg = await check_database_connection()

    if is_healthy:
        logger.info("Database connection successful")
    else:
        logger.error("Database connection failed during startup: {}", error_msg)
        msg = f"Database connection failed: {error_msg}"
        raise RuntimeError(msg)

    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    yield

    logger.info("Application shutdown initiated")
    await close_database()
    logger.info("Application shutdown complete")


def load_catalog(settings: Settings) -> ModelCatalog:
    """Import the configured models module and catalog everything on ``Base``."""
    models_module = settings.api_config.models_module
    if models_module:
        importlib.import_module(models_module)
        logger.info("Imported models module {}", models_module)
    return ModelCatalog.from_base(Base)


def create_app(
    settings: Settings | None = None,
    *,
    catalog: ModelCatalog | None = None,
    registries: Registries | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().
        catalog: Models to expose. Defaults to every model mapped on ``Base``.
        registries: Overrides registered by the call site. Defaults to empty
            registries, which expose every route of every model.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()
    if catalog is None:
        catalog = load_catalog(settings)
    if registries is None:
        registries = Registries()

    setup_logging(settings)
    setup_tracing(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    application.state.catalog = catalog
    application.state.registries = registries

    register_exception_handlers(application)

    # Last added runs first: context IDs are bound before requests are logged
    application.add_middleware(
        RequestLoggingMiddleware,
        log_config=settings.log_config,
        trust_proxy_headers=settings.environment == "production",
    )
    application.add_middleware(RequestContextMiddleware)

    @application.get("/health")
    async def health(request: Request) -> dict[str, object]:
        """Report store connectivity and the number of exposed models.

        Returns:
            dict[str, object]: Status ("healthy" or "degraded"), database
                connectivity and model count.
        """
        is_healthy, error_msg = await check_database_connection()
        if not is_healthy:
            logger.warning("Database health check failed: {}", error_msg)

        return {
            "status": "healthy" if is_healthy else "degraded",
            "database": is_healthy,
            "models": len(request.app.state.catalog),
        }

    controller = GenericController(catalog, registries, settings.api_config)
    model_router = ModelRouter(
        catalog, registries, controller, prefix=settings.api_config.prefix
    )
    application.include_router(model_router.build())

    instrument_app(application, settings)

    return application
