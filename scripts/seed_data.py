"""Create tables and seed the system categories and rules.

Safe to run repeatedly: existing system rows are left untouched.

    python scripts/seed_data.py
"""

import asyncio

from kasa.categorization.defaults import SYSTEM_CATEGORIES, SYSTEM_RULES
from kasa.config import settings
from kasa.core.logging import setup_logging
from kasa.db.seed import seed_system_data
from kasa.db.session import AsyncSessionLocal, async_engine
from kasa.models.base import Base


async def seed() -> None:
    print("Starting seed data script...")

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        created = await seed_system_data(session)

    await async_engine.dispose()

    print("\n✅ System data seeded successfully!")
    print(f"   Categories created: {created['categories']} (of {len(SYSTEM_CATEGORIES)})")
    print(f"   Rules created: {created['rules']} (of {len(SYSTEM_RULES)})")


if __name__ == "__main__":
    setup_logging(settings.log_level, settings.log_json)
    asyncio.run(seed())
