"""Shared fixtures for integration tests.

The application runs against an in-memory SQLite database: a single
connection (``StaticPool``) shared by every session, with the schema
created from the test models. ``get_db`` is overridden so the generated
routes use that engine.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TypeAlias

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from crudkit.api.main import create_app
from crudkit.core.config import DatabaseConfig, ObservabilityConfig, Settings
from crudkit.infrastructure.database import Base, ModelCatalog, get_db
from crudkit.resources import Registries

ClientFactory: TypeAlias = Callable[[Registries], Awaitable[AsyncClient]]


@pytest.fixture
def test_settings() -> Settings:
    """Settings with tracing disabled and an in-memory database URL."""
    return Settings(
        observability_config=ObservabilityConfig(enable_tracing=False),
        database_config=DatabaseConfig(database_url="sqlite+aiosqlite:///:memory:"),
    )


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory engine with the test schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
def app_factory(
    test_settings: Settings,
    catalog: ModelCatalog,
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[Registries], FastAPI]:
    """Build apps serving the test catalog with the given registries."""

    def _create(registries: Registries) -> FastAPI:
        app = create_app(test_settings, catalog=catalog, registries=registries)

        async def override_get_db() -> AsyncGenerator[AsyncSession]:
            async with session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        app.dependency_overrides[get_db] = override_get_db
        return app

    return _create


@pytest.fixture
async def client_factory(
    app_factory: Callable[[Registries], FastAPI],
) -> AsyncGenerator[ClientFactory]:
    """Factory fixture for clients of apps with custom registries.

    Usage:
        async def test_something(client_factory, registries):
            registries.access.register(AccessRule("Widget", ["get"]))
            client = await client_factory(registries)
    """
    clients = []

    async def _create_client(registries: Registries) -> AsyncClient:
        transport = ASGITransport(app=app_factory(registries))
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _create_client

    for client in clients:
        await client.aclose()


@pytest.fixture
async def client(
    client_factory: ClientFactory, registries: Registries
) -> AsyncClient:
    """Client of an app with no overrides."""
    return await client_factory(registries)
