"""Repositories for materials and their stock ledger."""

from sqlalchemy import case, func, select, update

from mes.models.material import Material, MaterialTransaction, TransactionType
from mes.repositories.base import Repository


class MaterialRepository(Repository[Material]):
    """Material rows plus the guarded stock mutation used by the ledger."""

    model = Material

    async def adjust_stock(self, material_id: int, delta: int) -> bool:
        """Apply ``delta`` to current_stock as a single compare-and-swap.

        A negative delta only applies while enough stock remains, evaluated
        by the database against the committed row, so two concurrent
        stock-outs cannot both succeed against the same units.

        Returns:
            True if the row was updated, False if the guard rejected it
        """
        stmt = (
            update(Material)
            .where(Material.id == material_id, Material.deleted_at.is_(None))
            .values(current_stock=Material.current_stock + delta)
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            stmt = stmt.where(Material.current_stock >= -delta)
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def low_stock(self) -> list[Material]:
        return await self.list(
            Material.current_stock <= Material.min_stock,
            order_by=(Material.code,),
        )


class MaterialTransactionRepository(Repository[MaterialTransaction]):
    """Insert-only access to ledger entries."""

    model = MaterialTransaction

    async def list_entries(
        self,
        page: int,
        page_size: int,
        material_id: int | None = None,
        transaction_type: str | None = None,
    ) -> tuple[list[MaterialTransaction], int]:
        criteria = []
        if material_id:
            criteria.append(MaterialTransaction.material_id == material_id)
        if transaction_type:
            criteria.append(MaterialTransaction.type == transaction_type)
        return await self.paginate(
            *criteria,
            page=page,
            page_size=page_size,
            order_by=(MaterialTransaction.created_at.desc(), MaterialTransaction.id.desc()),
        )

    async def stock_balance(self, material_id: int) -> int:
        """Sum of stock-ins minus stock-outs recorded for a material."""
        signed = func.coalesce(
            func.sum(
                case(
                    (MaterialTransaction.type == TransactionType.IN, MaterialTransaction.quantity),
                    else_=-MaterialTransaction.quantity,
                )
            ),
            0,
        )
        result = await self.session.execute(
            select(signed).where(MaterialTransaction.material_id == material_id)
        )
        return int(result.scalar() or 0)
