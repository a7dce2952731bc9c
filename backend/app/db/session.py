"""Async engine, session factory, and the per-request session dependency."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.config import get_settings

settings = get_settings()


def build_engine(url: str) -> AsyncEngine:
    """Create the app engine; pool sizing and SSL only apply to Postgres."""
    options: dict = {"echo": settings.debug, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        options.update(pool_size=5, max_overflow=10)
        if settings.database_requires_ssl:
            options["connect_args"] = {"ssl": "require"}
    return create_async_engine(url, **options)


engine = build_engine(settings.database_url)

# Handlers read attributes after commit, so nothing expires on commit
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request: committed on success, rolled back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
