import os
from logging.config import fileConfig

from sqlalchemy import create_engine, pool, text
from sqlmodel import SQLModel

from alembic import context
from src.crm.core.config import get_settings

# Import all models for metadata
from src.crm.models import data, public  # noqa: F401

APP_VERSION_TABLE = "alembic_version"
DATA_VERSION_TABLE = "alembic_data_version"

config = context.config

if config.config_file_name is not None and os.path.exists(config.config_file_name):
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def get_url() -> str:
    """Sync URL for the run: the tagged data source, or the application database.

    Alembic runs on psycopg2, so the asyncpg driver suffix is dropped.
    """
    url = context.get_tag_argument() or get_settings().database_url
    return url.replace("+asyncpg", "")


def include_object(obj, name, type_, reflected, compare_to):
    """Keep autogenerate to the tables the current run owns.

    Application tables are declared in the public schema; data source tables
    carry no schema.
    """
    if type_ != "table":
        return True
    is_app_table = getattr(obj, "schema", None) == "public"
    return not is_app_table if context.get_tag_argument() else is_app_table


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        version_table=DATA_VERSION_TABLE if context.get_tag_argument() else APP_VERSION_TABLE,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection, is_data_source: bool) -> None:
    # Both databases keep their tables in public; an explicit search_path
    # protects against servers configured with another default
    connection.execute(text("SET search_path TO public"))
    connection.commit()
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        version_table=DATA_VERSION_TABLE if is_data_source else APP_VERSION_TABLE,
        version_table_schema="public",
        compare_type=True,
        include_object=include_object,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode with sync engine."""
    connectable = create_engine(get_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        do_run_migrations(connection, bool(context.get_tag_argument()))

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
