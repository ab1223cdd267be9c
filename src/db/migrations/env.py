"""Alembic environment configuration for the bookmarks database."""
import asyncio

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection

from core.config import get_settings
from db.session import build_engine
from models import Base

target_metadata = Base.metadata


def _database_url() -> str:
    """Explicit sqlalchemy.url in the Alembic config wins over DATABASE_URL."""
    return context.config.get_main_option("sqlalchemy.url") or get_settings().database_url


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode - emit SQL to stdout."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations against a live database connection."""
    engine = build_engine(_database_url(), poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(_run_migrations)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
