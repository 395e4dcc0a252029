"""Async engine, session factory and declarative base."""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from arena.core.config import get_settings

Base = declarative_base()

settings = get_settings()

engine = create_async_engine(settings.database_url, echo=settings.debug, future=True)

# expire_on_commit=False: attempts are returned to callers and serialized after commit
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
