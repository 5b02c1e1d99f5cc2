"""
Juice Bar POS — Database engine and session factory
"""
from datetime import timezone

from sqlalchemy import DateTime, event
from sqlalchemy.types import TypeDecorator
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from juicebar_pos.core.config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    pass


class UTCDateTime(TypeDecorator):
    """
    Timestamps always leave the store as aware UTC datetimes.
    SQLite drops tzinfo on write, so values are stored as naive UTC there.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
            if dialect.name == "sqlite":
                value = value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def _install_sqlite_hooks(engine: AsyncEngine) -> None:
    """
    pysqlite defers BEGIN until the first write, which lets two sales read the
    same inventory row before either writes. Take the write lock up front so
    overlapping transactions serialize at the store.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    url = database_url or settings.DATABASE_URL
    connect_args = {}
    if url.startswith("sqlite"):
        # Busy timeout: a locked store fails fast instead of hanging
        connect_args["timeout"] = settings.DB_BUSY_TIMEOUT_SECONDS

    engine = create_async_engine(
        url,
        echo=settings.DB_ECHO if echo is None else echo,
        connect_args=connect_args,
    )
    if url.startswith("sqlite"):
        _install_sqlite_hooks(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    # Import models so every table is registered on Base.metadata
    from juicebar_pos.models import catalog, records, sales  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = build_engine()
SessionLocal = build_session_factory(engine)
