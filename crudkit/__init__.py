"""Crudkit - generic REST endpoints for SQLAlchemy models.

Crudkit derives collection and item endpoints for every mapped model of an
application, so plain CRUD tables need no hand-written controllers.

Architecture Overview:
- **API Layer**: FastAPI app factory, middleware and per-model route binding
- **Core Layer**: Configuration, logging, tracing and the exception hierarchy
- **Resources Layer**: Generic controller and the registries that customize it
- **Infrastructure Layer**: Async SQLAlchemy sessions, schema introspection
  and the generic repository

Extension points:
- **Processors**: replace the generic controller for a model or request shape
- **Filters**: contribute predicates to collection queries
- **DTO mappers**: project records before they leave the service
- **Validators**: replace schema-derived validation for a model
- **Access rules**: restrict route shapes and attach pre-request hooks
"""
