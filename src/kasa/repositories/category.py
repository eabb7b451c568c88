"""Category and category rule repositories."""
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.models.category import Category
from kasa.models.category_rule import CategoryRule
from kasa.repositories.base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Categories visible to a user: system ones plus their own."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Category)

    async def get_visible(self, user_id: UUID) -> list[Category]:
        result = await self.db.execute(
            select(Category)
            .where(or_(Category.is_system == True, Category.user_id == user_id))
            .order_by(Category.is_system.desc(), Category.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_visible_by_id(self, user_id: UUID, category_id: UUID) -> Category | None:
        result = await self.db.execute(
            select(Category).where(
                Category.id == category_id,
                or_(Category.is_system == True, Category.user_id == user_id),
            )
        )
        return result.scalar_one_or_none()


class CategoryRuleRepository(BaseRepository[CategoryRule]):
    """Category rules in evaluation order: system first, then by creation."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, CategoryRule)

    def _visible(self, user_id: UUID):
        return select(CategoryRule).where(
            or_(CategoryRule.is_system == True, CategoryRule.user_id == user_id)
        )

    async def get_ordered_for_user(self, user_id: UUID) -> list[CategoryRule]:
        result = await self.db.execute(
            self._visible(user_id).order_by(
                CategoryRule.is_system.desc(), CategoryRule.created_at.asc()
            )
        )
        return list(result.scalars().all())

    async def find_by_keyword(self, user_id: UUID, keyword: str) -> CategoryRule | None:
        """Case-insensitive keyword lookup among system and user rules."""
        result = await self.db.execute(
            self._visible(user_id)
            .where(func.lower(CategoryRule.keyword) == keyword.lower())
            .limit(1)
        )
        return result.scalar_one_or_none()
