from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.schema import MetaData
from sqlalchemy.types import TypeDecorator

from streamhaven.infra.settings import settings

# Deterministic constraint/index names (prevents Alembic churn)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime stored as UTC.

    SQLite drops tzinfo on the way back; values are normalised to UTC on write
    and re-tagged as UTC on read so comparisons in Python stay aware-vs-aware.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime is not allowed; attach a timezone")
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


def _engine_kwargs(url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"pool_pre_ping": True, "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"] = settings.pool_size
        kwargs["max_overflow"] = settings.max_overflow
        kwargs["pool_timeout"] = settings.pool_timeout
    return kwargs


def configure_sqlite(target: Engine) -> None:
    """Turn on FK enforcement and explicit transactions for SQLite.

    ON DELETE CASCADE needs the foreign_keys pragma. SAVEPOINT needs BEGIN to
    be emitted by SQLAlchemy rather than the driver; IMMEDIATE makes concurrent
    writers queue on the busy timeout instead of failing on lock upgrade.
    """
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_conn, _):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(target, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_engine(settings.database_url, echo=settings.echo_sql, **_engine_kwargs(settings.database_url))
configure_sqlite(engine)


SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
)


def get_engine(db_url: str | None = None) -> Engine:
    """Return an engine for ``db_url``.

    Without a URL, or with the configured DATABASE_URL, this is the global
    engine. Any other URL gets a new engine with the same SQLite setup; the
    caller disposes of it.
    """
    if not db_url or db_url == settings.database_url:
        return engine

    new_engine = create_engine(db_url, echo=False, **_engine_kwargs(db_url))
    configure_sqlite(new_engine)
    return new_engine


def create_schema(bind: Engine | None = None) -> None:
    """Create every table known to ``Base.metadata``."""
    # Entities register themselves on Base when imported
    from streamhaven.domain import entities  # noqa: F401

    Base.metadata.create_all(bind or engine)
