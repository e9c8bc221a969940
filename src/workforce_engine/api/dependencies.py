"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.config import Settings, get_settings
from workforce_engine.database import init_db


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency. Routes commit explicitly."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_actor(
    x_actor: Annotated[str | None, Header()] = None
) -> str:
    """Extract the acting user from header; required on mutations."""
    if not x_actor or not x_actor.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor header is required",
        )
    return x_actor.strip()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Actor = Annotated[str, Depends(get_actor)]
AppSettings = Annotated[Settings, Depends(get_settings)]
