"""Alembic environment for the predictions schema.

The rebalancer only reads ``predictions.tick_range_predictions``; the table
is owned here so a fresh database can be prepared for the forecasting job.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool, text

from cellar_rebalancer.db.base import Base
from cellar_rebalancer.db.engine import psycopg_url
from cellar_rebalancer.db.tables.predictions import SCHEMA

# Registers every table on Base.metadata
import cellar_rebalancer.db.tables  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    """CELLAR_DATABASE_URL, else sqlalchemy.url from alembic.ini, on the psycopg driver."""
    url = os.environ.get("CELLAR_DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("set CELLAR_DATABASE_URL or sqlalchemy.url in alembic.ini")
    return psycopg_url(url)


def include_object(obj, name, type_, reflected, compare_to):
    if type_ == "table":
        return obj.schema == SCHEMA
    return True


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_schemas=True,
        include_object=include_object,
        version_table_schema=SCHEMA,
    )
    with context.begin_transaction():
        context.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}")
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(get_url(), poolclass=pool.NullPool)

    with engine.connect() as connection:
        # The version table lives in the schema, so it must exist first
        connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}"))
        connection.commit()

        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_schemas=True,
            include_object=include_object,
            version_table_schema=SCHEMA,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
