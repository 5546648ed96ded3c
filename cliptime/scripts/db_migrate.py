"""Run database migrations using cliptime.shared.migrations.runner.

Usage:
    python -m cliptime.scripts.db_migrate          # Run all pending migrations
    python -m cliptime.scripts.db_migrate --dry    # Show pending migrations without applying
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from cliptime.shared.database import DatabaseManager, PoolConfig
from cliptime.shared.migrations.runner import MigrationRunner

logger = logging.getLogger("db_migrate")


async def migrate(database_url: str, dry: bool) -> int:
    db = DatabaseManager(database_url, PoolConfig.for_role("migrate"))
    await db.connect()
    try:
        runner = MigrationRunner(db.pool)
        if dry:
            pending = await runner.list_pending()
            logger.info(f"Pending: {len(pending)}")
            for version in pending:
                logger.info(f"  -> {version}")
            return 0

        applied = await runner.run_pending()
        if not applied:
            logger.info("No pending migrations.")
        return 0
    finally:
        await db.disconnect()


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply cliptime schema migrations")
    parser.add_argument("--dry", action="store_true", help="list pending migrations only")
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL not set. Check .env or environment variables.")
        sys.exit(1)

    sys.exit(asyncio.run(migrate(database_url, args.dry)))


if __name__ == "__main__":
    main()
