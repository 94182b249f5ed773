"""
create_tables.py: idempotent table creation script.
Run this before starting the service for the first time, or after schema changes.
Safe to run multiple times (create_all skips existing tables).

Usage:
    python scripts/create_tables.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Ensure the project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from assistify.config import get_settings
from assistify.database import build_engine, create_tables


async def main() -> None:
    """Create the users, chats and conversations tables."""
    engine = build_engine(get_settings())

    print("Creating tables...")
    await create_tables(engine)
    print("  ✓ users, chats, conversations ready")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
