from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, text

from app.core.config import SQLALCHEMY_DATABASE_URL
from app.core.database.models import Base
from migrate import sync_database_url

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
# This line sets up loggers basically.
fileConfig(config.config_file_name)  # type: ignore

target_metadata = Base.metadata


def get_exclude_tables_from_config(config_):
    if config_ is None:
        return []
    tables_ = config_.get("tables", None)
    if tables_ is not None:
        return tables_.split(",")
    return []


exclude_tables = get_exclude_tables_from_config(config.get_section("alembic:exclude"))


def include_object(_object, name, type_, reflected, compare_to):
    if type_ == "table" and name in exclude_tables:
        return False
    else:
        return True


def run_migrations_offline():
    """Run migrations in 'offline' mode.

    This configures the context with just a URL and not an Engine, so calls to context.execute() emit the given
    string to the script output.
    """
    context.configure(
        url=sync_database_url(SQLALCHEMY_DATABASE_URL),
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode with a (synchronous) engine connection."""
    engine = create_engine(sync_database_url(SQLALCHEMY_DATABASE_URL))
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, include_object=include_object)

        with context.begin_transaction():
            if connection.dialect.name == "postgresql":
                connection.execute(text("SELECT pg_advisory_xact_lock(10000);"))
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
