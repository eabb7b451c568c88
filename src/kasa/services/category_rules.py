"""Category rule management.

Every write invalidates the owner's rule cache entry so the next
categorization run sees the change.
"""

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from kasa.categorization.cache import RuleCache
from kasa.core.exceptions import ForbiddenError, InvalidCategoryError
from kasa.models.category_rule import CategoryRule
from kasa.repositories.category import CategoryRepository, CategoryRuleRepository
from kasa.services.categorization import invalidate_rule_cache

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"keyword", "category_id", "amount"}


class CategoryRuleService:
    """Create, update and delete user category rules."""

    def __init__(self, db: AsyncSession, cache: RuleCache | None = None):
        self.db = db
        self.cache = cache
        self.rule_repo = CategoryRuleRepository(db)
        self.category_repo = CategoryRepository(db)

    async def list_rules(self, user_id: UUID) -> list[CategoryRule]:
        return await self.rule_repo.get_ordered_for_user(user_id)

    async def create_rule(
        self,
        user_id: UUID,
        keyword: str,
        category_id: UUID,
        amount: Decimal | None = None,
    ) -> CategoryRule:
        """Create a user rule.

        Raises:
            InvalidCategoryError: If the category isn't visible to the user
        """
        await self._check_category(user_id, category_id)

        rule = await self.rule_repo.create(
            CategoryRule(
                user_id=user_id,
                keyword=keyword.strip(),
                category_id=category_id,
                amount=amount,
                is_system=False,
            )
        )
        invalidate_rule_cache(user_id, self.cache)
        logger.info("Category rule created", extra={"user_id": user_id})
        return rule

    async def update_rule(
        self, user_id: UUID, rule_id: UUID, updates: dict
    ) -> CategoryRule | None:
        """Update keyword, category or amount of a user rule.

        Returns:
            The updated rule, or None if it doesn't exist

        Raises:
            ForbiddenError: If the rule is a system rule or another user's
            InvalidCategoryError: If the new category isn't visible to the user
        """
        rule = await self._get_owned(user_id, rule_id)
        if rule is None:
            return None

        data = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        if data.get("category_id") is not None:
            await self._check_category(user_id, data["category_id"])
        if "keyword" in data:
            data["keyword"] = data["keyword"].strip()

        updated = await self.rule_repo.update(rule_id, data)
        invalidate_rule_cache(user_id, self.cache)
        return updated

    async def delete_rule(self, user_id: UUID, rule_id: UUID) -> bool:
        """Delete a user rule.

        Raises:
            ForbiddenError: If the rule is a system rule or another user's
        """
        rule = await self._get_owned(user_id, rule_id)
        if rule is None:
            return False

        deleted = await self.rule_repo.delete(rule_id)
        invalidate_rule_cache(user_id, self.cache)
        return deleted

    async def _get_owned(self, user_id: UUID, rule_id: UUID) -> CategoryRule | None:
        rule = await self.rule_repo.get_by_id(rule_id)
        if rule is None:
            return None
        if rule.is_system or rule.user_id != user_id:
            raise ForbiddenError({"rule_id": str(rule_id)})
        return rule

    async def _check_category(self, user_id: UUID, category_id: UUID) -> None:
        if await self.category_repo.get_visible_by_id(user_id, category_id) is None:
            raise InvalidCategoryError({"category_id": str(category_id)})
