"""Database engine, session factory and the shared document store."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from learnpath.config import get_settings
from learnpath.db.store import DocumentStore

settings = get_settings()


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Create async engine
engine = build_engine(settings.database_url, echo=settings.debug)

# Session factory
AsyncSessionLocal = build_session_factory(engine)

# Single store client, handed to routes through the get_store dependency
document_store = DocumentStore(AsyncSessionLocal)


async def get_store() -> DocumentStore:
    """FastAPI dependency for the document store."""
    return document_store
