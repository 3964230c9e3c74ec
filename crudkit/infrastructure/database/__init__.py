"""Database infrastructure with async SQLAlchemy and the repository pattern.

Core components:
- **base**: Declarative base and common model fields
- **schema**: Field descriptors introspected from mapped classes
- **catalog**: Model name to descriptor/repository map built at startup
- **repository**: Generic CRUD operations bound to one model
- **errors**: Store failure translation into client messages
- **session**: Async engine and session management
- **dependencies**: FastAPI dependency injection helpers
"""

from crudkit.infrastructure.database.base import Base, BaseModel
from crudkit.infrastructure.database.catalog import CatalogEntry, ModelCatalog
from crudkit.infrastructure.database.dependencies import DatabaseSession, get_db
from crudkit.infrastructure.database.repository import ModelRepository
from crudkit.infrastructure.database.schema import (
    FieldDescriptor,
    FieldKind,
    ModelDescriptor,
    describe_model,
    record_to_dict,
)
from crudkit.infrastructure.database.session import (
    close_database,
    create_database_engine,
    get_async_session,
    get_engine,
    get_session_factory,
)

__all__ = [
    "Base",
    "BaseModel",
    "CatalogEntry",
    "DatabaseSession",
    "FieldDescriptor",
    "FieldKind",
    "ModelCatalog",
    "ModelDescriptor",
    "ModelRepository",
    "close_database",
    "create_database_engine",
    "describe_model",
    "get_async_session",
    "get_db",
    "get_engine",
    "get_session_factory",
    "record_to_dict",
]
