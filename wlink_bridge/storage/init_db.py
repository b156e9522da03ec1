# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Database Initialization — Create tables from ORM metadata.
"""

import asyncio

from wlink_bridge.storage.database import create_all_tables, close_db

# Ensure models are imported so Base.metadata knows about them
import wlink_bridge.storage.models  # noqa: F401


async def main():
    """Create all service tables."""
    print("[init_db] Creating tables...")
    await create_all_tables()
    print("[init_db] Done.")
    await close_db()


if __name__ == "__main__":
    asyncio.run(main())
