"""Alembic environment configuration.

This module configures Alembic for database migrations with the following features:
- Database URL from the modelshelf settings (data.dir) unless set in alembic.ini
- SQLite batch mode support for ALTER TABLE operations
- Import of all catalog models for autogenerate support
"""

from logging.config import fileConfig

import anyio
from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context

from modelshelf.config import load_config
from modelshelf.database import Base
from modelshelf.models import Collection, FileEntry, ModelCollection, ModelEntry  # noqa: F401

# this is the Alembic Config object
config = context.config

# Override sqlalchemy.url with the value from settings if not set via command line
if not config.get_main_option("sqlalchemy.url"):
    settings = anyio.run(load_config)
    config.set_main_option("sqlalchemy.url", settings.data.database_url)

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL without an Engine."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        is_sqlite = connection.dialect.name == "sqlite"

        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            # SQLite cannot ALTER most columns; batch mode recreates the table
            render_as_batch=is_sqlite,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
