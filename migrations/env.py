# 📄 File: migrations/env.py
# 🧭 Purpose (Layman Explanation):
# Tells Alembic how to connect to each service's database and which tables belong to it, so the
# user database and the product database can each be upgraded on their own.
# 🧪 Purpose (Technical Summary):
# Alembic environment for both services. The target service is chosen with `-x service=users`
# or `-x service=products`; each has its own metadata, database URL and version table.
# Online migrations run through an async engine.
# 🔗 Dependencies:
# - alembic (migration tool)
# - SQLAlchemy async engine (asyncpg / aiosqlite drivers)
# - python-dotenv (environment variables)
# - app.shared.config.settings (database URLs)
# 🔄 Connected Modules / Calls From:
# - alembic CLI commands (upgrade, downgrade, revision)

import asyncio
from logging.config import fileConfig

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

load_dotenv()

from app.modules.product_catalog.infrastructure.database.models import ProductServiceBase  # noqa: E402
from app.modules.user_management.infrastructure.database.models import UserServiceBase  # noqa: E402
from app.shared.config.settings import get_settings  # noqa: E402

# This is the Alembic Config object
config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

SERVICES = {
    "users": {
        "metadata": UserServiceBase.metadata,
        "url": lambda settings: settings.USER_DATABASE_URL,
        "version_table": "alembic_version_users",
    },
    "products": {
        "metadata": ProductServiceBase.metadata,
        "url": lambda settings: settings.PRODUCT_DATABASE_URL,
        "version_table": "alembic_version_products",
    },
}


def get_service() -> str:
    """
    Resolve the service being migrated from `-x service=...`.

    Returns:
        str: "users" or "products"
    """
    service = context.get_x_argument(as_dictionary=True).get("service", "users")
    if service not in SERVICES:
        raise ValueError(f"Unknown service '{service}', expected one of {sorted(SERVICES)}")
    return service


SERVICE = get_service()
target_metadata = SERVICES[SERVICE]["metadata"]
version_table = SERVICES[SERVICE]["version_table"]


def get_database_url() -> str:
    return SERVICES[SERVICE]["url"](get_settings())


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    Emits SQL to the script output instead of connecting.
    """
    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        version_table=version_table,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        version_table=version_table,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_database_url()

    connectable = async_engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
