import logging
import typing

from sqlalchemy.ext.asyncio import AsyncSession

T = typing.TypeVar("T")

logger = logging.getLogger(__name__)


class SQLAlchemyStore:
    """Store backed by an `AsyncSession`.

    Rows are flushed, not committed; transaction boundaries belong to the
    caller. Database errors propagate as raised by SQLAlchemy.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert(self, instance: T) -> T:
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        logger.debug("Flushed %s.", type(instance).__name__)
        return instance
