"""Idempotent seeding of system categories and rules."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.categorization.defaults import SYSTEM_CATEGORIES, SYSTEM_RULES
from kasa.models.category import Category
from kasa.models.category_rule import CategoryRule

logger = logging.getLogger(__name__)


async def seed_system_data(db: AsyncSession) -> dict[str, int]:
    """Insert missing system categories and rules.

    Existing rows are matched by slug (categories) and keyword (rules) and
    left untouched.

    Returns:
        Counts of inserted categories and rules
    """
    result = await db.execute(select(Category).where(Category.is_system == True))
    categories = {c.slug: c for c in result.scalars().all()}

    created_categories = 0
    for entry in SYSTEM_CATEGORIES:
        if entry["slug"] in categories:
            continue
        category = Category(is_system=True, user_id=None, **entry)
        db.add(category)
        categories[entry["slug"]] = category
        created_categories += 1
    await db.flush()

    result = await db.execute(select(CategoryRule.keyword).where(CategoryRule.is_system == True))
    existing_keywords = set(result.scalars().all())

    created_rules = 0
    for keyword, slug in SYSTEM_RULES:
        if keyword in existing_keywords:
            continue
        db.add(
            CategoryRule(
                keyword=keyword,
                category_id=categories[slug].id,
                is_system=True,
                user_id=None,
            )
        )
        created_rules += 1

    await db.commit()
    logger.info(
        "System data seeded",
        extra={"categories": created_categories, "rules": created_rules},
    )
    return {"categories": created_categories, "rules": created_rules}
