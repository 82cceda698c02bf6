from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from models.models import Base


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for the configured data source"""
    kwargs = {}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # One shared connection so every session sees the same in-memory schema
        kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return create_async_engine(database_url, echo=echo, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
