"""HTTP API layer with FastAPI.

Key components:
- **main**: Application factory and lifecycle management
- **router**: Route generation for every cataloged model
- **middleware**: Request context, request logging and exception handlers
- **schemas**: Pydantic models documenting the error bodies
- **utils**: orjson responses and reply-to-response conversion
"""
