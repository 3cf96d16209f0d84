from typing import AsyncGenerator
from sqlmodel.ext.asyncio.session import AsyncSession
from src.infrastructure.database import get_session

async def get_session_dep() -> AsyncGenerator[AsyncSession, None]:
    async with get_session() as session:
        yield session
