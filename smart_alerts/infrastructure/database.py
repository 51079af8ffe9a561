"""PostgreSQL connection pool and schema migrations for alert state storage."""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import asyncpg
from asyncpg import Pool

from smart_alerts.infrastructure.config import get_settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

_pool: Pool | None = None
_pool_lock = asyncio.Lock()


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode JSONB columns to Python objects and encode them from JSON."""
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


async def get_pool() -> Pool:
    """Get or create the shared connection pool.

    Raises:
        RuntimeError: If DATABASE_URL is not configured
    """
    global _pool

    if _pool is not None:
        return _pool

    async with _pool_lock:
        if _pool is not None:
            return _pool

        settings = get_settings()
        if settings.database_url is None:
            raise RuntimeError("DATABASE_URL is not configured")

        _pool = await asyncpg.create_pool(
            str(settings.database_url),
            min_size=1,
            max_size=settings.database_pool_size,
            command_timeout=60,
            init=_init_connection,
        )
        logger.info(f"Database pool ready (max {settings.database_pool_size} connections)")
        return _pool


async def close_pool() -> None:
    """Close the pool if one was opened."""
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncGenerator[asyncpg.Connection, None]:
    """Borrow a pooled connection."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


async def execute(query: str, *args) -> str:
    async with get_connection() as conn:
        return await conn.execute(query, *args)


async def fetchrow(query: str, *args) -> asyncpg.Record | None:
    async with get_connection() as conn:
        return await conn.fetchrow(query, *args)


async def fetchval(query: str, *args):
    async with get_connection() as conn:
        return await conn.fetchval(query, *args)


def pending_migrations(applied: set[str], migrations_dir: Path = MIGRATIONS_DIR) -> list[Path]:
    """SQL files not yet applied, in file name order."""
    return [p for p in sorted(migrations_dir.glob("*.sql")) if p.stem not in applied]


async def apply_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply every pending migration, each in its own transaction.

    Applied versions are tracked in ``schema_migrations`` by file stem.

    Returns:
        Versions applied by this call
    """
    applied_now = []
    async with get_connection() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version VARCHAR(50) PRIMARY KEY,
                applied_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
            )
        """)
        rows = await conn.fetch("SELECT version FROM schema_migrations")

        for migration in pending_migrations({r["version"] for r in rows}, migrations_dir):
            async with conn.transaction():
                await conn.execute(migration.read_text())
                await conn.execute(
                    "INSERT INTO schema_migrations (version) VALUES ($1)", migration.stem
                )
            logger.info(f"Applied migration {migration.stem}")
            applied_now.append(migration.stem)

    return applied_now
