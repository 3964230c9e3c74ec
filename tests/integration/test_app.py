"""Integration tests for the application factory and middleware."""

from collections.abc import AsyncGenerator

import pytest
import pytest_check
from fastapi import FastAPI
from httpx import AsyncClient

from crudkit.api.main import create_app, load_catalog
from crudkit.core.config import ApiConfig, Settings
from crudkit.infrastructure.database import ModelCatalog
from crudkit.infrastructure.database.session import close_database
from crudkit.resources import Registries

ROUTE_OPERATIONS = [
    ("/api/widget", "post", "post"),
    ("/api/widget", "get", "get_collection"),
    ("/api/widget/{id}", "get", "get_item"),
    ("/api/widget/{id}", "put", "put"),
    ("/api/widget/{id}", "patch", "patch"),
    ("/api/widget/{id}", "delete", "delete"),
]


@pytest.fixture
async def reset_database() -> AsyncGenerator[None]:
    """Dispose the process-wide engine created by the health check."""
    yield
    await close_database()


@pytest.mark.integration
@pytest.mark.asyncio
class TestApplication:
    """Test app wiring."""

    async def test_correlation_and_request_ids(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/widget", headers={"X-Correlation-ID": "corr-123"}
        )

        with pytest_check.check:
            assert response.headers["X-Correlation-ID"] == "corr-123"
        with pytest_check.check:
            assert response.headers["X-Request-ID"].startswith("req-")

    async def test_correlation_id_generated(self, client: AsyncClient) -> None:
        response = await client.get("/api/widget")
        assert len(response.headers["X-Correlation-ID"]) == 36

    @pytest.mark.usefixtures("reset_database")
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        with pytest_check.check:
            assert response.status_code == 200
        with pytest_check.check:
            assert response.json() == {
                "status": "healthy",
                "database": True,
                "models": 2,
            }

    async def test_unknown_path(self, client: AsyncClient) -> None:
        response = await client.get("/api/gadget")

        with pytest_check.check:
            assert response.status_code == 404
        with pytest_check.check:
            assert response.json() == {"message": "Not Found"}

    async def test_custom_prefix(
        self, test_settings: Settings, catalog: ModelCatalog
    ) -> None:
        settings = test_settings.model_copy(
            update={"api_config": ApiConfig(prefix="/rest")}
        )
        app = create_app(settings, catalog=catalog, registries=Registries())

        paths = app.openapi()["paths"]

        with pytest_check.check:
            assert "/rest/widget" in paths
        with pytest_check.check:
            assert "/rest/widget/{id}" in paths
        with pytest_check.check:
            assert "/api/widget" not in paths

    async def test_route_names(
        self, test_settings: Settings, catalog: ModelCatalog
    ) -> None:
        app: FastAPI = create_app(test_settings, catalog=catalog, registries=Registries())
        paths = app.openapi()["paths"]

        for path, method, shape in ROUTE_OPERATIONS:
            operation_id = paths[path][method]["operationId"]
            with pytest_check.check:
                assert operation_id.startswith(f"widget_{shape}_"), operation_id


@pytest.mark.integration
def test_load_catalog_uses_declarative_base(test_settings: Settings) -> None:
    """Without an explicit catalog every model mapped on Base is exposed."""
    catalog = load_catalog(test_settings)

    with pytest_check.check:
        assert "Widget" in catalog
    with pytest_check.check:
        assert "Category" in catalog
