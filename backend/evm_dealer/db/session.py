from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from evm_dealer.core.config import settings


def async_database_uri(uri: str) -> str:
    """sqlite:///file.db -> sqlite+aiosqlite:///file.db, other drivers pass through"""
    if uri.startswith("sqlite:///"):
        return uri.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return uri


engine = create_async_engine(async_database_uri(settings.SQLITE_DATABASE_URI), echo=settings.SQL_ECHO)

# Objects stay usable after commit so services can return them to the routers
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)
