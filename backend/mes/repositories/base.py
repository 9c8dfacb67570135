"""Generic repository with soft-deletion applied to every query."""

from datetime import datetime
from typing import Any, Generic, List, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mes.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Repository for a soft-deletable model.

    Every statement built here carries ``deleted_at IS NULL`` unless the
    caller explicitly asks for ``include_deleted=True``. Services never
    build their own base queries for soft-deletable models, so logically
    removed rows cannot leak through a forgotten predicate.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession, model: type[ModelT] | None = None):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session
            model: Model class, when not fixed by a subclass
        """
        self.session = session
        if model is not None:
            self.model = model

    @property
    def soft_deletable(self) -> bool:
        return hasattr(self.model, "deleted_at")

    def query(self, *criteria: Any, include_deleted: bool = False) -> Select:
        """Build a SELECT over the model with the soft-delete filter applied."""
        stmt = select(self.model)
        if self.soft_deletable and not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        if criteria:
            stmt = stmt.where(*criteria)
        return stmt

    async def get(self, entity_id: int, include_deleted: bool = False) -> ModelT | None:
        result = await self.session.execute(
            self.query(self.model.id == entity_id, include_deleted=include_deleted)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, entity_id: int) -> ModelT | None:
        """Load a row and lock it until the surrounding transaction ends.

        Backends without row locks (SQLite) ignore FOR UPDATE; callers that
        need correctness there pair this with a guarded UPDATE.
        """
        result = await self.session.execute(
            self.query(self.model.id == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_one(self, *criteria: Any, include_deleted: bool = False) -> ModelT | None:
        result = await self.session.execute(
            self.query(*criteria, include_deleted=include_deleted).limit(1)
        )
        return result.scalars().first()

    async def exists(self, *criteria: Any, include_deleted: bool = False) -> bool:
        return await self.find_one(*criteria, include_deleted=include_deleted) is not None

    async def count(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(self.query(*criteria).subquery())
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def list(
        self,
        *criteria: Any,
        order_by: Sequence[Any] = (),
        offset: int | None = None,
        limit: int | None = None,
    ) -> List[ModelT]:
        stmt = self.query(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def paginate(
        self,
        *criteria: Any,
        page: int,
        page_size: int,
        order_by: Sequence[Any] = (),
    ) -> tuple[List[ModelT], int]:
        """Return one page of rows together with the unpaged total."""
        total = await self.count(*criteria)
        items = await self.list(
            *criteria,
            order_by=order_by,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return items, total

    async def distinct_values(self, column: Any) -> List[Any]:
        stmt = (
            self.query(column.is_not(None), column != "")
            .with_only_columns(column)
            .distinct()
            .order_by(column)
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]

    async def add(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def soft_delete(self, entity: ModelT) -> None:
        if self.soft_deletable:
            entity.deleted_at = datetime.utcnow()
            await self.session.flush()
        else:
            await self.session.delete(entity)
            await self.session.flush()
