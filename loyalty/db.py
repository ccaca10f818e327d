import asyncpg
import logging
from pathlib import Path
from .config import settings

logger = logging.getLogger(__name__)
pool: asyncpg.pool.Pool | None = None

MIGRATIONS_FILE = Path(__file__).parent / "models.sql"

async def run_migrations():
    """Run database migrations from models.sql file"""
    try:
        if not MIGRATIONS_FILE.exists():
            logger.error(f"Migration file not found: {MIGRATIONS_FILE}")
            raise FileNotFoundError(f"Migration file not found: {MIGRATIONS_FILE}")

        sql_content = MIGRATIONS_FILE.read_text(encoding='utf-8')

        logger.info("Running database migrations...")

        # Create a temporary connection to run migrations
        conn = await asyncpg.connect(dsn=settings.DB_DSN)

        try:
            await conn.execute(sql_content)
            logger.info("Database migrations completed successfully")
        finally:
            await conn.close()

    except Exception as e:
        logger.error(f"Migration failed: {str(e)}")
        raise

async def init_db():
    """Initialize database connection pool"""
    global pool

    if settings.RUN_MIGRATIONS_ON_STARTUP:
        await run_migrations()

    pool = await asyncpg.create_pool(
        dsn=settings.DB_DSN,
        min_size=settings.DB_POOL_MIN_SIZE,
        max_size=settings.DB_POOL_MAX_SIZE,
    )

    logger.info("Database connection pool initialized")

async def close_db():
    """Close the connection pool on shutdown"""
    global pool

    if pool is not None:
        await pool.close()
        pool = None
        logger.info("Database connection pool closed")

async def get_conn():
    """Get database connection from pool"""
    if pool is None:
        raise RuntimeError("DB pool not initialized")
    async with pool.acquire() as conn:
        yield conn

async def ping() -> str:
    """Database status for health checks: connected, not_initialized or the error"""
    if pool is None:
        return "not_initialized"

    try:
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except (OSError, asyncpg.PostgresError) as e:
        logger.warning(f"Health check database probe failed: {e}")
        return f"error: {e}"

    return "connected"
