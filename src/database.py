"""Database configuration and connection management."""
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from src import config

logger = logging.getLogger(__name__)


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine; SQLite connections take the write lock at BEGIN."""
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs.setdefault("connect_args", {"timeout": config.SQLITE_BUSY_TIMEOUT})

    new_engine = create_async_engine(
        url,
        echo=False,  # Set to True for SQL query logging
        future=True,
        **kwargs,
    )

    if is_sqlite:
        # pysqlite defers BEGIN until the first write, so two requests can both
        # read a counter before either writes. BEGIN IMMEDIATE serializes them
        # on the database write lock; waiting is handled by the busy timeout.
        @event.listens_for(new_engine.sync_engine, "connect")
        def _disable_implicit_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(new_engine.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return new_engine


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = build_engine(config.DATABASE_URL)

# Create async session factory
async_session_maker = build_session_maker(engine)

# Base class for models
Base = declarative_base()


async def init_db(bind: AsyncEngine = None):
    """Initialize database tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")


async def get_session() -> AsyncSession:
    """Get database session for dependency injection."""
    async with async_session_maker() as session:
        yield session
