from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from config import settings


def _engine_options(database_url: str) -> dict:
    # The file-backed SQLite default has no server connection to go stale.
    if database_url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True}


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)
