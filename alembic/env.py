"""
Alembic environment for the StreamHaven content store.

The target URL comes from, in order: ``alembic -x db_url=...``, the test
database when ``ALEMBIC_USE_TEST_DB=1``, then ``DATABASE_URL``. Online
migrations run on an engine built by ``streamhaven.infra.db.get_engine`` so
SQLite migrations see the same foreign-key enforcement as the application.
"""

import os
import sys
from logging.config import fileConfig

from alembic import context

SRC = os.path.normpath(os.path.join(os.path.dirname(__file__), "..", "src"))
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from streamhaven.domain import entities  # noqa: E402,F401  (registers the tables)
from streamhaven.infra.db import Base, get_engine  # noqa: E402
from streamhaven.infra.settings import settings  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def include_object(object, name, type_, reflected, compare_to):
    return not (type_ == "table" and name == "alembic_version")


def database_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("db_url")
    if override:
        return override
    if os.getenv("ALEMBIC_USE_TEST_DB") == "1" and settings.test_database_url:
        return settings.test_database_url
    return settings.database_url


def _configure(url: str, **kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=url.startswith("sqlite"),
        include_object=include_object,
        **kwargs,
    )


def run_migrations_offline() -> None:
    url = database_url()
    _configure(url, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = database_url()
    engine = get_engine(url)
    try:
        with engine.connect() as connection:
            _configure(url, connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
