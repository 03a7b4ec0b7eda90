"""Declarative base, shared column types and the async database session."""

import uuid
from datetime import datetime, timezone
from typing import Annotated, AsyncIterator

from sqlalchemy import DateTime, String, func
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from docsign.core.config import get_settings

settings = get_settings()


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


uuid_pk = Annotated[str, mapped_column(String(36), primary_key=True, default=generate_uuid)]

# Set on creation; updated_at is bumped explicitly by the lifecycle manager
timestamp = Annotated[
    datetime,
    mapped_column(DateTime(timezone=True), default=utc_now, server_default=func.now()),
]

# Unset until the event it records happens
event_timestamp = Annotated[
    datetime,
    mapped_column(DateTime(timezone=True), nullable=True, default=None),
]


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all models."""


class TimestampMixin:
    created_at: Mapped[timestamp]
    updated_at: Mapped[timestamp]


engine = create_async_engine(settings.database_url, echo=settings.debug)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency to get database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create any missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
