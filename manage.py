#!/usr/bin/env python3
"""
Database and maintenance commands.
Creates tables, seeds the currency catalog and cleans orphaned video uploads.
"""

import asyncio
import sys
import argparse
import logging

import httpx

from flowestate.config import settings
from flowestate.database import AsyncSessionLocal, create_tables, drop_tables, close_db_connection
from flowestate.services.currency import CurrencyService
from flowestate.services.mux import MuxService
from flowestate.utils.dependencies import HTTP_TIMEOUT_SECONDS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class MaintenanceManager:
    """Runs one-off database and housekeeping tasks."""

    async def seed_currencies(self) -> None:
        """Insert the built-in currencies that are missing."""
        async with AsyncSessionLocal() as session:
            created = await CurrencyService(session).seed_defaults()
        if created:
            logger.info(f"Created {len(created)} currencies")
        else:
            logger.info("Currency catalog already seeded")

    async def cleanup_videos(self) -> None:
        """Delete Mux assets left behind by abandoned property uploads."""
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            async with AsyncSessionLocal() as session:
                cleaned = await MuxService(client).cleanup_orphans(session)
        logger.info(f"Cleaned orphaned uploads of {cleaned} properties")

    async def reset_database(self) -> None:
        """Drop and recreate all tables, then seed currencies."""
        logger.warning("Resetting database - all data will be lost!")
        await drop_tables()
        await create_tables()
        await self.seed_currencies()


async def _run(coro) -> None:
    try:
        await coro
    finally:
        await close_db_connection()


def main():
    """Main CLI interface for maintenance tasks."""
    parser = argparse.ArgumentParser(description=f"{settings.app_name} maintenance commands")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all database tables")
    subparsers.add_parser("seed-currencies", help="Seed the currency catalog")
    subparsers.add_parser("cleanup-videos", help="Delete orphaned Mux uploads")

    reset_parser = subparsers.add_parser("reset", help="Reset database (development only)")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm database reset")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    manager = MaintenanceManager()

    try:
        if args.command == "create-tables":
            asyncio.run(_run(create_tables()))

        elif args.command == "seed-currencies":
            asyncio.run(_run(manager.seed_currencies()))

        elif args.command == "cleanup-videos":
            asyncio.run(_run(manager.cleanup_videos()))

        elif args.command == "reset":
            if not args.confirm:
                print("Database reset requires --confirm flag")
                return
            asyncio.run(_run(manager.reset_database()))

    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
