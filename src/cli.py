import argparse
import asyncio

from loguru import logger

import src.models  # noqa: F401
from src.auth.service import AuthError, AuthService
from src.config import get_settings
from src.db.database import (
    Base,
    async_session,
    ensure_sqlite_dir,
    get_sync_engine,
    sync_database_url,
)
from src.scheduler.jobs import run_promotion_reconcile

settings = get_settings()


def init_database():
    """Create all tables."""
    ensure_sqlite_dir(sync_database_url)
    Base.metadata.create_all(get_sync_engine())
    logger.info("Database initialized")


async def _create_admin(username: str, password: str) -> bool:
    async with async_session() as session:
        try:
            user = await AuthService(session).register(username, password)
        except AuthError as e:
            logger.error(f"Cannot create admin {username}: {e.detail}")
            return False
    logger.info(f"Admin user created: {user.username} (id={user.id})")
    return True


def create_admin(username: str, password: str) -> bool:
    init_database()
    return asyncio.run(_create_admin(username, password))


def main():
    parser = argparse.ArgumentParser(description="Tanah Merapi API CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # serve command
    subparsers.add_parser("serve", help="Start API server")

    # create-admin command
    admin_parser = subparsers.add_parser("create-admin", help="Register an admin user")
    admin_parser.add_argument("--username", "-u", required=True)
    admin_parser.add_argument("--password", "-p", required=True)

    # reconcile command
    subparsers.add_parser("reconcile", help="Run one promotion reconcile pass")

    # seed command
    subparsers.add_parser("seed", help="Seed default site settings and social links")

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "src.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    elif args.command == "create-admin":
        if not create_admin(args.username, args.password):
            raise SystemExit(1)
    elif args.command == "reconcile":
        init_database()
        result = run_promotion_reconcile()
        logger.info(f"Result: {result}")
    elif args.command == "seed":
        from src.db.seed import seed_site_content

        seed_site_content()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
