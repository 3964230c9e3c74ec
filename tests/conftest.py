"""Root conftest.py for the crudkit test suite.

This file contains project-wide fixtures and pytest configuration.
"""

from collections.abc import Generator

import pytest
from loguru import logger

from crudkit.core.config import get_settings
from crudkit.core.context import RequestContext
from crudkit.core.logging import _state
from crudkit.infrastructure.database import ModelCatalog
from crudkit.resources import Registries
from tests.fixtures.models import Category, Widget


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    """Give every test a fresh settings instance."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    """Keep correlation IDs from leaking between tests."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture(autouse=True)
def quiet_logging() -> Generator[None]:
    """Keep app creation from adding stdout handlers during tests."""
    logger.remove()
    _state.configured = True
    yield
    logger.remove()


@pytest.fixture
def catalog() -> ModelCatalog:
    """Catalog exposing the test models."""
    return ModelCatalog.from_models([Category, Widget])


@pytest.fixture
def registries() -> Registries:
    """Empty registries: every route open, no overrides."""
    return Registries()
