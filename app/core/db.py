import ssl
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import (
    APP_ENV,
    DATABASE_URL,
    DB_ECHO_POOL,
    DB_MAX_OVERFLOW,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_SSL_VERIFY,
)

Base = declarative_base()


def _postgres_options() -> dict:
    ssl_ctx = ssl.create_default_context()
    if not DB_SSL_VERIFY:
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE

    return {
        "connect_args": {
            "ssl": ssl_ctx,
            # asyncpg behind pgbouncer cannot keep prepared statements
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
        },
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }


def _sqlite_options(url: str) -> dict:
    options = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live and die with their single connection
    if url.rstrip("/").endswith("sqlite+aiosqlite:") or ":memory:" in url:
        options["poolclass"] = StaticPool
    return options


def _enable_sqlite_foreign_keys(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str = DATABASE_URL) -> AsyncEngine:
    """
    Async engine for ``url``.

    SQLite gets foreign keys switched on per connection; the ledger and
    request tables rely on them.
    """
    is_sqlite = url.startswith("sqlite")
    options = _sqlite_options(url) if is_sqlite else _postgres_options()

    built = create_async_engine(
        url,
        echo=False,
        echo_pool=DB_ECHO_POOL,
        **options,
    )
    if is_sqlite:
        event.listen(built.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return built


def build_session_factory(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine()
AsyncSessionLocal = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables(bind: AsyncEngine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_models():
    """Create tables in place; development and test only, production uses migrations."""
    if APP_ENV not in {"development", "test"}:
        raise RuntimeError("init_models() is forbidden outside development")

    import app.models  # noqa: F401

    await create_tables(engine)
