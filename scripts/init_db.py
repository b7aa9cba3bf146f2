#!/usr/bin/env python3
"""Initialize the SpacePlus database.

Creates any missing tables and an admin account. Existing tables and an
existing account with the same email are left untouched, so the script is
safe to run on every deploy. Production schemas should be managed with
``alembic upgrade head``; ``--skip-tables`` only creates the account.

Usage:
    python scripts/init_db.py --email admin@spaceplus-worldwide.com --name Admin
    SPACEPLUS_ADMIN_PASSWORD=... python scripts/init_db.py --skip-tables

Exit codes:
    0 - Database ready
    1 - Missing password or database error
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import os
import sys

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from spaceplus.core.log import configure_logging
from spaceplus.db import close_engine, get_async_session, get_engine
from spaceplus.db.models import AdminRole, AdminUser, Base
from spaceplus.services.session import hash_password

logger = logging.getLogger("init_db")


async def create_tables() -> None:
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created")


async def ensure_admin(email: str, name: str, password: str) -> bool:
    """Create the admin account unless one with this email exists.

    Returns:
        True if an account was created.
    """
    email = email.strip().lower()
    async with get_async_session() as session:
        result = await session.execute(select(AdminUser).where(AdminUser.email == email))
        if result.scalar_one_or_none() is not None:
            logger.info("Admin user %s already exists", email)
            return False

        session.add(
            AdminUser(
                email=email,
                name=name,
                password_hash=hash_password(password),
                role=AdminRole.ADMIN,
                is_active=True,
            )
        )
        await session.commit()

    logger.info("Admin user %s created", email)
    return True


async def _run(args: argparse.Namespace, password: str) -> None:
    try:
        if not args.skip_tables:
            await create_tables()
        await ensure_admin(args.email, args.name, password)
    finally:
        await close_engine()


def main() -> int:
    """Run database initialization.

    Returns:
        Exit code (0 for success, 1 on failure).
    """
    parser = argparse.ArgumentParser(description="Initialize the SpacePlus database")
    parser.add_argument(
        "--email",
        default=os.environ.get("SPACEPLUS_ADMIN_EMAIL", "admin@spaceplus-worldwide.com"),
        help="Admin email (default: $SPACEPLUS_ADMIN_EMAIL or admin@spaceplus-worldwide.com)",
    )
    parser.add_argument("--name", default="Administrator", help="Admin display name")
    parser.add_argument(
        "--skip-tables",
        action="store_true",
        help="Only create the admin account (schema managed by alembic)",
    )
    args = parser.parse_args()

    configure_logging("INFO")

    password = os.environ.get("SPACEPLUS_ADMIN_PASSWORD")
    if not password and sys.stdin.isatty():
        password = getpass.getpass("Admin password: ")
    if not password:
        print("ERROR: set SPACEPLUS_ADMIN_PASSWORD or run interactively")
        return 1

    try:
        asyncio.run(_run(args, password))
    except SQLAlchemyError as e:
        logger.error("Database initialization failed: %s", e)
        return 1

    print("Database ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
