# alembic/env.py
from __future__ import annotations

import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from eva360.core.config import settings
from eva360.db.base import Base  # registra todos los modelos en Base.metadata

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)

log = logging.getLogger("alembic.env")

# El entorno manda; sqlalchemy.url en alembic.ini solo si no hay DATABASE_URL
db_url = settings.db_url if (settings.DATABASE_URL or settings.SQLALCHEMY_DATABASE_URI) \
    else (config.get_main_option("sqlalchemy.url") or settings.db_url)
config.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))

target_metadata = Base.metadata
is_sqlite = db_url.startswith("sqlite")

# mismas opciones para ambos modos; SQLite necesita batch para ALTER TABLE
MIGRATION_OPTS = dict(
    target_metadata=target_metadata,
    compare_type=True,
    compare_server_default=True,
    render_as_batch=is_sqlite,
)


def _hide_password(url: str) -> str:
    head, sep, tail = url.partition("://")
    if not sep or "@" not in tail:
        return url
    creds, host = tail.split("@", 1)
    return f"{head}://{creds.split(':', 1)[0]}:***@{host}"


log.info("Migrando contra %s", _hide_password(db_url))


def run_migrations_offline() -> None:
    """Genera el SQL sin conectarse (alembic upgrade --sql)."""
    context.configure(url=db_url, literal_binds=True, dialect_opts={"paramstyle": "named"}, **MIGRATION_OPTS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # NullPool: las migraciones abren una sola conexión y la sueltan
    connectable = create_engine(db_url, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, **MIGRATION_OPTS)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
