import asyncio
import getpass
import os
import sys
from alembic import command
from alembic.config import Config
from licita.core.clock import Clock
from licita.core.config import settings
from licita.core.logging_config import logger
from licita.crud.users import list_users
from licita.db.database import Database
from licita.services.permissions import PermissionStore
from licita.services.user_service import UserService

CONNECT_ATTEMPTS = 5
CONNECT_DELAY_SECONDS = 2


async def wait_for_database(database: Database) -> None:
    for attempt in range(1, CONNECT_ATTEMPTS + 1):
        if await database.ping():
            logger.info("Database is ready")
            return
        logger.warning(f"Waiting for database, attempt {attempt}/{CONNECT_ATTEMPTS}")
        await asyncio.sleep(CONNECT_DELAY_SECONDS)
    raise ConnectionError(f"Database is unreachable after {CONNECT_ATTEMPTS} attempts")


async def seed_role_permissions(database: Database) -> int:
    """Догоняет права по умолчанию для пользователей, созданных до появления грантов."""
    store = PermissionStore(Clock())
    granted = 0
    async with database.session() as db:
        for user in await list_users(db, status="ACTIVE"):
            granted += await store.grant_role_defaults(db, user)
    logger.info(f"Seeded {granted} default permissions")
    return granted


def upgrade(revision: str = "head") -> None:
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    logger.info(f"Upgrading schema at {settings.POSTGRES_HOST}:{settings.POSTGRES_PORT} to {revision}")
    command.upgrade(alembic_cfg, revision)


async def prepare_database() -> None:
    database = Database.from_url(settings.DATABASE_URL)
    try:
        await wait_for_database(database)
    finally:
        await database.dispose()


async def seed() -> None:
    database = Database.from_url(settings.DATABASE_URL)
    try:
        await seed_role_permissions(database)
    finally:
        await database.dispose()


async def create_admin(database: Database, email: str, password: str) -> str:
    users = UserService(PermissionStore(Clock()))
    async with database.session() as db:
        admin = await users.create_admin(db, email, password)
    return admin.id


async def run_create_admin(email: str, password: str) -> None:
    database = Database.from_url(settings.DATABASE_URL)
    try:
        admin_id = await create_admin(database, email, password)
    finally:
        await database.dispose()
    logger.info(f"Administrator {email} ready, id {admin_id}")


def main(argv: list[str]) -> None:
    if argv[:1] == ["create-admin"]:
        if len(argv) < 2:
            raise SystemExit("usage: python -m licita.migrate create-admin EMAIL")
        # пароль из окружения для автоматизации, иначе спрашиваем интерактивно
        password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
        asyncio.run(run_create_admin(argv[1], password))
        return

    revision = argv[0] if argv else "head"
    asyncio.run(prepare_database())
    # env.py запускает свой event loop, поэтому upgrade вызывается вне asyncio.run
    upgrade(revision)
    asyncio.run(seed())
    logger.info("Migrations applied")


if __name__ == "__main__":
    main(sys.argv[1:])
