"""Materials and the inventory ledger.

``current_stock`` on a material is never written directly: it only moves
through ``record_transaction``, which appends a ledger entry and applies
the matching stock delta in the same database transaction.
"""

import logging

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from mes.core.database import transactional
from mes.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from mes.core.pagination import clamp_page
from mes.models.material import Material, MaterialTransaction, TransactionType
from mes.models.production import ProductionOrder
from mes.repositories.base import Repository
from mes.repositories.material_repository import (
    MaterialRepository,
    MaterialTransactionRepository,
)

logger = logging.getLogger(__name__)

_DESCRIPTIVE_FIELDS = ("code", "name", "type", "unit", "price", "min_stock", "max_stock", "description")


class MaterialService:
    """Material master data plus stock-in / stock-out recording."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.materials = MaterialRepository(session)
        self.transactions = MaterialTransactionRepository(session)
        self.orders = Repository(session, ProductionOrder)

    # ------------------------------------------------------------------
    # Material master data
    # ------------------------------------------------------------------

    async def create_material(
        self,
        code: str,
        name: str,
        type: str | None = None,
        unit: str | None = None,
        price: float = 0,
        min_stock: int = 0,
        max_stock: int = 0,
        description: str | None = None,
    ) -> Material:
        """Create a material with an empty stock level."""
        self._validate_material(code, name, price, min_stock, max_stock)
        async with transactional(self.session):
            await self._ensure_code_free(code)
            material = await self.materials.add(
                Material(
                    code=code,
                    name=name,
                    type=type,
                    unit=unit,
                    price=price,
                    min_stock=min_stock,
                    max_stock=max_stock,
                    description=description,
                    current_stock=0,
                )
            )
        logger.info(f"Created material {material.code} (id={material.id})")
        return material

    async def get_material(self, material_id: int) -> Material:
        material = await self.materials.get(material_id)
        if material is None:
            raise NotFoundError("Material", material_id)
        return material

    async def list_materials(
        self,
        page: int = 1,
        page_size: int = 10,
        material_type: str | None = None,
        keyword: str | None = None,
    ) -> tuple[list[Material], int]:
        page, page_size = clamp_page(page, page_size)
        criteria = []
        if material_type:
            criteria.append(Material.type == material_type)
        if keyword:
            criteria.append(
                or_(Material.code.like(f"%{keyword}%"), Material.name.like(f"%{keyword}%"))
            )
        return await self.materials.paginate(
            *criteria,
            page=page,
            page_size=page_size,
            order_by=(Material.created_at.desc(), Material.id.desc()),
        )

    async def update_material(self, material_id: int, **changes) -> Material:
        """Update descriptive fields and the active flag.

        Stock bounds are re-validated against the merged result; the stock
        level itself is not writable here.
        """
        if "current_stock" in changes:
            raise ValidationError("current_stock can only change through stock transactions")

        async with transactional(self.session):
            material = await self.get_material(material_id)
            merged = {field: getattr(material, field) for field in _DESCRIPTIVE_FIELDS}
            merged.update({k: v for k, v in changes.items() if k in _DESCRIPTIVE_FIELDS and v is not None})
            self._validate_material(
                merged["code"], merged["name"], merged["price"], merged["min_stock"], merged["max_stock"]
            )

            status = changes.get("status")
            if status is not None and status not in (0, 1):
                raise ValidationError("Material status must be 0 or 1")

            if merged["code"] != material.code:
                await self._ensure_code_free(merged["code"], exclude_id=material.id)

            for field, value in merged.items():
                setattr(material, field, value)
            if status is not None:
                material.status = status
            await self.session.flush()
        logger.info(f"Updated material {material.code} (id={material.id})")
        return material

    async def delete_material(self, material_id: int) -> None:
        async with transactional(self.session):
            material = await self.get_material(material_id)
            if await self.transactions.exists(MaterialTransaction.material_id == material_id):
                raise ConflictError(
                    f"Material {material.code} has stock transactions and cannot be deleted"
                )
            await self.materials.soft_delete(material)
        logger.info(f"Deleted material {material.code} (id={material_id})")

    async def material_types(self) -> list[str]:
        return await self.materials.distinct_values(Material.type)

    async def low_stock_materials(self) -> list[Material]:
        """Materials at or below their minimum stock, computed on every call."""
        return await self.materials.low_stock()

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    async def record_transaction(
        self,
        material_id: int,
        type: str,
        quantity: int,
        price: float = 0,
        supplier: str | None = None,
        production_order_id: int | None = None,
        remark: str | None = None,
        operator_id: int | None = None,
    ) -> MaterialTransaction:
        """Record a stock-in or stock-out.

        The ledger entry insert and the stock adjustment commit together or
        not at all. Stock-outs are guarded by a compare-and-swap on the
        material row (plus a row lock where the backend supports one), so
        concurrent stock-outs can never overdraw.

        Returns:
            The created ledger entry with its ``material`` loaded

        Raises:
            ValidationError: unknown direction, non-positive quantity or
                negative price
            NotFoundError: material or referenced production order missing
            InsufficientStockError: stock-out larger than current stock
        """
        if type not in TransactionType.all():
            raise ValidationError(f"Transaction type must be one of {TransactionType.all()}, got {type!r}")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer")
        if price is None:
            price = 0
        if price < 0:
            raise ValidationError("Price must not be negative")

        async with transactional(self.session):
            material = await self.materials.get_for_update(material_id)
            if material is None:
                raise NotFoundError("Material", material_id)

            if production_order_id is not None and not await self.orders.exists(
                ProductionOrder.id == production_order_id
            ):
                raise NotFoundError("Production order", production_order_id)

            if type == TransactionType.OUT and material.current_stock < quantity:
                logger.warning(
                    f"Rejected stock-out of {quantity} for {material.code}: only {material.current_stock} in stock"
                )
                raise InsufficientStockError(material.code, quantity, material.current_stock)

            delta = quantity if type == TransactionType.IN else -quantity
            if not await self.materials.adjust_stock(material.id, delta):
                # Another writer consumed the stock after it was read
                await self.session.refresh(material, ["current_stock"])
                logger.warning(
                    f"Rejected stock-out of {quantity} for {material.code} after concurrent update"
                )
                raise InsufficientStockError(material.code, quantity, material.current_stock)

            entry = await self.transactions.add(
                MaterialTransaction(
                    material_id=material.id,
                    material=material,
                    type=type,
                    quantity=quantity,
                    price=price,
                    total_amount=round(quantity * price, 2),
                    supplier=supplier,
                    production_order_id=production_order_id,
                    remark=remark,
                    operator_id=operator_id,
                )
            )
            await self.session.refresh(material, ["current_stock", "updated_at"])

        logger.info(
            f"Stock {type} {quantity} x {material.code} "
            f"(entry={entry.id}, stock now {material.current_stock})"
        )
        return entry

    async def list_transactions(
        self,
        page: int = 1,
        page_size: int = 10,
        material_id: int | None = None,
        transaction_type: str | None = None,
    ) -> tuple[list[MaterialTransaction], int]:
        """Ledger entries, newest first."""
        page, page_size = clamp_page(page, page_size)
        if transaction_type and transaction_type not in TransactionType.all():
            raise ValidationError(f"Transaction type must be one of {TransactionType.all()}")
        return await self.transactions.list_entries(
            page, page_size, material_id=material_id, transaction_type=transaction_type
        )

    async def stock_balance(self, material_id: int) -> int:
        """Stock level recomputed from the ledger alone."""
        await self.get_material(material_id)
        return await self.transactions.stock_balance(material_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_material(code, name, price, min_stock, max_stock) -> None:
        if not code or not name:
            raise ValidationError("Material code and name are required")
        if price is not None and price < 0:
            raise ValidationError("Price must not be negative")
        if min_stock < 0 or max_stock < 0:
            raise ValidationError("Stock limits must not be negative")
        if max_stock <= min_stock:
            raise ValidationError("max_stock must be greater than min_stock")

    async def _ensure_code_free(self, code: str, exclude_id: int | None = None) -> None:
        criteria = [Material.code == code]
        if exclude_id is not None:
            criteria.append(Material.id != exclude_id)
        if await self.materials.exists(*criteria, include_deleted=True):
            raise ConflictError(f"Material code {code} already exists")
