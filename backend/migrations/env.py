"""Alembic environment for the account schema.

Runs migrations with the synchronous driver. The URL comes from
settings.database_url_sync unless ``sqlalchemy.url`` is set on the
Alembic config (tests point it at a scratch database).
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from fost_accounts.core.config import settings
from fost_accounts.models import Base

config = context.config

# Tests build Config() without an ini file and keep their own logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or settings.database_url_sync


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live connection."""
    connectable = engine_from_config(
        {"sqlalchemy.url": _database_url()},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
