import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core import errors
from app.core.config import settings

logger = logging.getLogger(__name__)

# One engine (and therefore one asyncpg pool) per process, created on first use
_engine: Optional[AsyncEngine] = None
_engine_lock = asyncio.Lock()


# All the models are "stored" in the Base class will be processed by the Engine
class Base(DeclarativeBase):
    pass


def build_database_url() -> Union[str, URL]:
    """
    Resolve the database URL from settings.

    DATABASE_URL wins when set; otherwise every DB_* part is required.
    """
    if settings.DATABASE_URL:
        return settings.DATABASE_URL

    missing = [
        name
        for name in ("DB_USER", "DB_PASSWORD", "DB_HOST", "DB_NAME")
        if not getattr(settings, name)
    ]
    if missing:
        raise errors.ConnectionUnavailable(
            f"Missing database settings: {', '.join(missing)}"
        )

    return URL.create(
        "postgresql+asyncpg",
        username=settings.DB_USER,
        password=settings.DB_PASSWORD,
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        database=settings.DB_NAME,
    )


async def wait_for_db(
    engine: AsyncEngine,
    retries: Optional[int] = None,
    delay: Optional[float] = None,
) -> None:
    """
    Block until the database answers `SELECT 1`.

    Tries a fixed number of times with a fixed pause between attempts.
    Raises ConnectionUnavailable once the attempts are used up.
    """
    retries = settings.DB_CONNECT_RETRIES if retries is None else retries
    delay = settings.DB_CONNECT_RETRY_DELAY if delay is None else delay

    for attempt in range(1, retries + 1):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Connected to Postgres")
            return
        except (SQLAlchemyError, OSError) as error:
            if attempt == retries:
                logger.error(
                    f"DB not ready ({error.__class__.__name__}), giving up "
                    f"({attempt}/{retries})"
                )
                break
            logger.warning(
                f"DB not ready ({error.__class__.__name__}), retrying in {delay}s... "
                f"({attempt}/{retries})"
            )
            await asyncio.sleep(delay)

    raise errors.ConnectionUnavailable("Could not connect to Postgres after retries")


async def get_engine() -> AsyncEngine:
    """
    Return the shared engine, creating it on the first call.

    Concurrent first callers wait on the lock and then reuse whatever the
    winner published, so only one pool is ever built.
    """
    global _engine

    if _engine is not None:
        return _engine

    async with _engine_lock:
        if _engine is None:
            logger.info("No database engine exists - creating a new pool")
            engine = create_async_engine(build_database_url(), echo=settings.DB_ECHO)
            try:
                await wait_for_db(engine)
            except errors.ConnectionUnavailable:
                await engine.dispose()
                raise
            _engine = engine

    return _engine


async def dispose_engine() -> None:
    """Close the pool on shutdown; the next get_engine() builds a new one."""
    global _engine

    async with _engine_lock:
        if _engine is not None:
            await _engine.dispose()
            _engine = None


@asynccontextmanager
async def connect() -> AsyncIterator[AsyncConnection]:
    """Check a connection out of the shared pool for the duration of the block."""
    engine = await get_engine()
    async with engine.connect() as conn:
        yield conn


# This is the "Bridge" that gives my routes access to postgres
async def get_db():
    async with connect() as conn:
        yield conn


async def run_db_query(
    conn: AsyncConnection, sql: str, params: Optional[Sequence[Any]] = None
) -> List[Dict[str, Any]]:
    """
    Run a statement with positional `$n` parameters and return plain dict rows.

    The SQL text goes to asyncpg unchanged, so values are always bound by the
    driver and never formatted into the statement.
    """
    bound = tuple(params or ())

    if settings.DEBUG_SQL and sql.lstrip().upper().startswith("SELECT"):
        explain = await conn.exec_driver_sql(
            f"EXPLAIN (ANALYZE, FORMAT JSON) {sql}", bound
        )
        plan = explain.scalar()
        logger.debug(f"Query plan info: {json.dumps(plan, indent=2, default=str)}")

    result = await conn.exec_driver_sql(sql, bound)
    return [dict(row) for row in result.mappings().all()]


async def init_db() -> None:
    """Create the acquisitions/companies tables and their indexes if missing."""
    # Register the tables on Base.metadata
    from app.core import models  # noqa: F401

    engine = await get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables are ready")
