"""Transfer label rule repository."""
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.models.transfer_label_rule import TransferLabelRule
from kasa.repositories.base import BaseRepository


class TransferLabelRuleRepository(BaseRepository[TransferLabelRule]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, TransferLabelRule)

    async def get_ordered_for_user(self, user_id: UUID) -> list[TransferLabelRule]:
        """System rules first, then the user's, each in creation order."""
        result = await self.db.execute(
            select(TransferLabelRule)
            .where(or_(TransferLabelRule.is_system == True, TransferLabelRule.user_id == user_id))
            .order_by(TransferLabelRule.is_system.desc(), TransferLabelRule.created_at.asc())
        )
        return list(result.scalars().all())
