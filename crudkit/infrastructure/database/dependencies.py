"""FastAPI dependency injection for database session management.

Each generated route receives its own session: committed when the handler
returns, rolled back when it raises. Tests swap the engine by overriding
``get_db`` in ``app.dependency_overrides``.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crudkit.infrastructure.database.session import get_async_session


async def get_db() -> AsyncGenerator[AsyncSession]:
    """Provide a request-scoped database session.

    Yields:
        AsyncGenerator[AsyncSession]: Session committed on success or rolled
            back on error.
    """
    async with get_async_session() as session:
        yield session


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
