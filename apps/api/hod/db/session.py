import os

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from hod.core import get_settings


def async_database_url(url: str) -> str:
    """Render/Heroku hand out postgres:// URLs; the app always talks asyncpg."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def build_engine(url: str | None = None) -> AsyncEngine:
    url = async_database_url(url or get_settings().database_url)
    kwargs = {"echo": os.getenv("SQL_ECHO", "0") == "1"}
    # Render's pgbouncer does the pooling
    if "render.com" in url:
        kwargs["poolclass"] = NullPool
    return create_async_engine(url, **kwargs)


engine = build_engine()

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)
Base = declarative_base()
