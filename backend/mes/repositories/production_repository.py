"""Repositories for production orders and document numbering."""

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from mes.models.production import DocumentSequence, ProductionOrder
from mes.repositories.base import Repository


class ProductionOrderRepository(Repository[ProductionOrder]):
    model = ProductionOrder


class DocumentSequenceRepository:
    """Per-prefix counters backing generated document numbers.

    The counter row is bumped with an UPDATE inside the caller's
    transaction, which holds the row lock until commit. Two writers on the
    same prefix therefore serialize instead of reading the same count.
    """

    def __init__(self, session):
        self.session = session

    async def _bump(self, prefix: str) -> int | None:
        result = await self.session.execute(
            update(DocumentSequence)
            .where(DocumentSequence.prefix == prefix)
            .values(last_value=DocumentSequence.last_value + 1)
            .returning(DocumentSequence.last_value)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def next_value(self, prefix: str) -> int:
        """Reserve and return the next number for ``prefix`` (starting at 1)."""
        value = await self._bump(prefix)
        if value is not None:
            return value

        # First document of the day: create the row, tolerating a racing insert
        try:
            async with self.session.begin_nested():
                self.session.add(DocumentSequence(prefix=prefix, last_value=1))
            return 1
        except IntegrityError:
            value = await self._bump(prefix)
            if value is None:
                raise
            return value
