"""Async SQLAlchemy engine and session factory."""

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool
from minizap.config import config


def _create_engine(database_url: str, echo: bool = False):
    if database_url.endswith(":memory:"):
        # one shared connection, otherwise every session sees an empty database
        return create_async_engine(
            database_url, echo=echo, poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(database_url, echo=echo)


engine = _create_engine(config.database_url, echo=config.debug)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def make_session_factory(database_url: str, echo: bool = False):
    """Build a separate engine + session factory (CLI --db runs, app factory, tests)."""
    other = _create_engine(database_url, echo=echo)
    return other, async_sessionmaker(other, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncSession:
    """Dependency injection for FastAPI routes."""
    async with async_session() as session:
        yield session


async def init_db(bind=None):
    """Create all tables. Called at startup."""
    from minizap.db.models import Base
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
