"""
Script to create all database tables.

This script creates the webhooks, webhook_requests and webhook_stats tables
for the configured DATABASE_URL. Pass --drop to drop them instead.
"""
import asyncio
import sys

from hookrelay.config import settings
from hookrelay.database import create_all_tables, create_engine, drop_all_tables


async def main(drop: bool = False):
    """Main entry point."""
    engine = create_engine(settings)
    try:
        if drop:
            print("Dropping database tables...")
            await drop_all_tables(engine)
            print("All tables dropped!")
        else:
            print("Creating database tables...")
            await create_all_tables(engine)
            print("All tables created successfully!")
    finally:
        await engine.dispose()
    print("Done!")


if __name__ == "__main__":
    asyncio.run(main(drop="--drop" in sys.argv[1:]))
