"""Commit helper for writes that touch both sides of a link."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.core.exceptions import PairedWriteError

logger = logging.getLogger(__name__)


async def commit_paired_write(db: AsyncSession, operation: str) -> None:
    """Commit the pending paired changes, or roll all of them back.

    Raises:
        PairedWriteError: If the database rejected the commit
    """
    try:
        await db.commit()
    except Exception as e:
        # Do not log str(e): it can include SQL + bound parameters.
        logger.error(
            f"Paired write failed: {operation}",
            extra={"operation": operation, "error_type": type(e).__name__},
        )
        await db.rollback()
        if isinstance(e, SQLAlchemyError):
            raise PairedWriteError({"operation": operation}) from e
        raise
