"""
Database access to the host application's configuration tables.

The sync code reads `mailjet_config` and reads/writes `core_config_data`
(template ids). Schema ownership stays with the host application.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from mailjet_sync.core.config import settings

Base = declarative_base()


def build_engine() -> AsyncEngine:
    """engine חדש לפי DATABASE_URL"""
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_pre_ping=True,
    )


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine()
AsyncSessionLocal = build_session_maker(engine)


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: session אחד לבקשה"""
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def get_task_session() -> AsyncIterator[AsyncSession]:
    """
    Session למשימת Celery.

    כל משימה רצה ב-event loop חדש, ולכן מקבלת engine משלה שנסגר
    בסוף המשימה (engine ברמת המודול קשור ל-loop אחר).
    """
    task_engine = build_engine()
    try:
        async with build_session_maker(task_engine)() as session:
            yield session
    finally:
        await task_engine.dispose()
