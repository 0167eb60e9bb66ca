"""
Alembic environment for the document tables.

The URL comes from settings (sync driver), unless overridden on the
command line with ``alembic -x dburl=... upgrade head``. SQLite runs in
batch mode so ALTERs on the document tables work there too.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from learnpath.config import get_settings
from learnpath.db import models  # noqa: F401 - registers documents / document_unique_keys
from learnpath.db.base import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("dburl")
    return override or get_settings().database_url_sync


def _configure_options(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        # JSON vs JSONB body column differs per dialect
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    url = get_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = get_url()
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options(url))

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
