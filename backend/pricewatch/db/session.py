"""Async database session and engine configuration."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pricewatch.config import settings

# SQLite doesn't support pool_size / max_overflow / pool_pre_ping
_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

_engine_kwargs: dict = {"echo": settings.DEBUG}
if not _is_sqlite:
    # Transaction poolers reject prepared statements
    _engine_kwargs.update(
        pool_size=max(1, settings.DATABASE_POOL_SIZE),
        max_overflow=0,
        pool_pre_ping=True,
        connect_args={"statement_cache_size": 0, "timeout": 15},
    )

engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
