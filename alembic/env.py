"""
env.py — Alembic environment for the Ashinaga API

The database URL always comes from app settings (DATABASE_URL), never from
alembic.ini, so migrations and the app agree on the target. SQLite runs in
batch mode because it cannot ALTER most constraints in place.

Called by: alembic CLI
Depends on: app.models (Base + all tables), app.config (settings)
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from app.config import settings
from app.models import Base  # noqa: F401  importing registers every table

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _options(**extra) -> dict:
    return dict(target_metadata=Base.metadata, compare_type=True, **extra)


def run_offline(url: str) -> None:
    """Render SQL to stdout instead of executing it."""
    context.configure(
        **_options(
            url=url,
            literal_binds=True,
            dialect_opts={"paramstyle": "named"},
            render_as_batch=url.startswith("sqlite"),
        )
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(
            **_options(connection=connection, render_as_batch=connection.dialect.name == "sqlite")
        )
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


if context.is_offline_mode():
    run_offline(settings.database_url)
else:
    run_online(settings.database_url)
