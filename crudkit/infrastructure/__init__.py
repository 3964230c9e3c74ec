"""Infrastructure layer: data persistence for the generated endpoints.

Key responsibilities:
- **Database access**: Async SQLAlchemy 2.0 engine and session lifecycle
- **Schema introspection**: Field descriptors derived from mapped classes
- **Repository pattern**: Generic CRUD operations bound to one model
- **Store error translation**: Constraint failures mapped to client messages
"""
