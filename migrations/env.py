from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from texlink.config import Config
from texlink.db_migrations import to_sqlalchemy_url


alembic_config = context.config

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name, disable_existing_loggers=False)

# The order schema is raw SQL (texlink.db.init_schema); there is no metadata to autogenerate from.
target_metadata = None


def _order_db_url() -> str:
    """`flask db` passes the app's DB_PATH; a bare `alembic` run falls back to Config."""
    return to_sqlalchemy_url(alembic_config.get_main_option("sqlalchemy.url") or Config.DB_PATH)


def run_offline() -> None:
    context.configure(
        url=_order_db_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    section = dict(alembic_config.get_section(alembic_config.config_ini_section) or {})
    section["sqlalchemy.url"] = _order_db_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool, future=True)

    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
