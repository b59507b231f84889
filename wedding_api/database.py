"""
Database connection and session management for SQLAlchemy 2.0.
Configured for async operations against MySQL (aiomysql driver).
"""
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from urllib.parse import urlparse
import asyncio
import logging
import socket

from wedding_api.config import settings

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()

_engine_args = {
    "echo": False,  # Set to True for SQL query logging in development
}

# Pool settings only apply to MySQL (not SQLite)
if settings.DATABASE_URL and settings.DATABASE_URL.startswith("mysql"):
    _engine_args.update({
        "pool_size": settings.DB_POOL_SIZE,  # Bounded pool shared by all handlers
        "max_overflow": 0,
        "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
        "pool_recycle": 3600,  # Recycle connections after 1 hour (MySQL wait_timeout)
        "connect_args": {
            "connect_timeout": settings.DB_CONNECT_TIMEOUT,
            "charset": "utf8mb4",
        }
    })

engine = create_async_engine(
    settings.DATABASE_URL if settings.DATABASE_URL else "sqlite+aiosqlite:///:memory:",
    **_engine_args
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """
    FastAPI dependency for database sessions.
    Provides async database session with automatic commit/rollback.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}", exc_info=True)
            raise
        finally:
            await session.close()


async def with_query_timeout(awaitable, timeout: float = None):
    """
    Race a database call against a timer.

    Raises:
        asyncio.TimeoutError: If the call does not finish within the timeout
    """
    if timeout is None:
        timeout = settings.DB_QUERY_TIMEOUT
    return await asyncio.wait_for(awaitable, timeout=timeout)


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    try:
        parsed = urlparse(url)

        if not url.startswith(("mysql://", "mysql+aiomysql://")):
            return False, f"Invalid database URL scheme. Expected mysql+aiomysql://, got: {parsed.scheme}"

        hostname = parsed.hostname
        if not hostname:
            return False, "No hostname found in DATABASE_URL"

        try:
            socket.getaddrinfo(hostname, None)
            dns_status = "DNS resolution successful"
        except socket.gaierror as e:
            dns_status = f"DNS resolution failed: {str(e)}"

        return True, f"URL format valid. Hostname: {hostname}, Port: {parsed.port or 3306}, Database: {parsed.path or '/'}. {dns_status}"

    except Exception as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"


async def init_db():
    """
    Initialize database connection.
    Used by the startup event to verify the connection; the schema itself is
    managed by Alembic.
    """
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL not set, skipping database initialization")
        return

    is_valid, diagnostic = _validate_database_url(settings.DATABASE_URL)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection initialized successfully")
    except Exception as e:
        error_msg = str(e)
        if "access denied" in error_msg.lower():
            logger.error(
                f"Database connection failed - Authentication error: {error_msg}\n"
                f"Check the username and password in DATABASE_URL.\n"
                f"Diagnostic: {diagnostic}"
            )
        elif "can't connect" in error_msg.lower() or "timed out" in error_msg.lower():
            logger.error(
                f"Database connection failed - Server unreachable: {error_msg}\n"
                f"Check that MySQL is running and the host/port are correct.\n"
                f"Diagnostic: {diagnostic}"
            )
        else:
            logger.error(
                f"Database connection failed ({type(e).__name__}): {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        raise


async def close_db():
    """Close database connections. Used by the shutdown event."""
    await engine.dispose()
    logger.info("Database connections closed")
