"""Alembic environment for the TALLY event log.

The URL comes from ``-x url=...``, then the ``sqlalchemy.url`` main option set
by `tally.config.build_alembic_config`, then ``TALLY_DB_URL``. Column types and
server defaults are compared during autogenerate; SQLite runs in batch mode.
"""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

# registers event_store on the shared metadata
import tally.adapters.eventstore.schema  # noqa: F401 # pylint: disable=unused-import
from tally.adapters.db.dialects import DialectName
from tally.adapters.db.metadata import metadata

# pylint: disable=no-member

alembic_config = context.config

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

COMPARE = {"compare_type": True, "compare_server_default": True}


def database_url() -> str:
    """Return the URL to migrate, or fail when none is configured."""
    candidates = (
        context.get_x_argument(as_dictionary=True).get("url"),
        alembic_config.get_main_option("sqlalchemy.url"),
        os.environ.get("TALLY_DB_URL"),
    )
    # an unexpanded "%(...)s" placeholder counts as unset
    for url in candidates:
        if url and "%(" not in url:
            return url
    raise RuntimeError("No database URL: pass -x url=... or set TALLY_DB_URL.")


def emit_sql() -> None:
    """Write the migration DDL to stdout without connecting."""
    context.configure(
        url=database_url(),
        target_metadata=metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE,
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate() -> None:
    """Apply the migrations over a live connection."""
    engine = create_engine(database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=metadata,
            render_as_batch=connection.dialect.name == DialectName.SQLITE.value,
            **COMPARE,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    emit_sql()
else:
    migrate()
