"""
Seed script — copies the mock fixtures into the database for development / demo.

Usage:
    python -m globaledge.seed

The script is idempotent: it checks for existing users before inserting.
"""

import asyncio
import logging

from sqlalchemy import select
from sqlmodel import SQLModel

from globaledge.core.config import settings
from globaledge.db.session import AsyncSessionLocal, engine
from globaledge.integration.mock_data import COLLECTIONS, MockDataStore
from globaledge.models.user import User

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def seed() -> None:
    """Create tables and insert the mock fixtures if the database is empty."""
    import globaledge.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).limit(1))
        if result.scalars().first() is not None:
            logger.info("Database already contains data, skipping seed.")
            return

        # A private store so the process-wide mock data is never attached to a session.
        store = MockDataStore.seeded(settings.MOCK_SEED)
        for name in COLLECTIONS:
            session.add_all(store.all(name))
        await session.commit()

        logger.info(
            "Seeded %s",
            ", ".join(f"{count} {name}" for name, count in store.counts().items()),
        )


if __name__ == "__main__":
    asyncio.run(seed())
