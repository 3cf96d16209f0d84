import os
from typing import AsyncIterator
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import SQLModel
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio.engine import create_async_engine, AsyncEngine
import structlog

logger = structlog.get_logger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./postpilot.db")

engine: AsyncEngine = create_async_engine(DATABASE_URL, echo=False)


async def init_db(bind: AsyncEngine = engine) -> None:
    # table models must be imported so they register on SQLModel.metadata
    from src.UAA import models as _user_models  # noqa: F401
    from src.models import media_asset as _media_models  # noqa: F401
    from src.models import post as _post_models  # noqa: F401

    async with bind.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    logger.info("db_tables_ready")


@asynccontextmanager
async def get_session(bind: AsyncEngine = engine) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(bind, expire_on_commit=False) as session:
        yield session
