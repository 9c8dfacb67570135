import logging

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from mes.core.database import transactional
from mes.core.exceptions import ConflictError, NotFoundError, ValidationError
from mes.core.pagination import clamp_page
from mes.models.product import Product
from mes.models.production import ProductionOrder
from mes.repositories.base import Repository

logger = logging.getLogger(__name__)

_UPDATABLE = ("name", "description", "unit", "price", "status")


class ProductService:
    """Product master data."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.products = Repository(session, Product)
        self.orders = Repository(session, ProductionOrder)

    async def create_product(
        self,
        code: str,
        name: str,
        unit: str | None = None,
        description: str | None = None,
        price: float = 0,
    ) -> Product:
        if not code or not name:
            raise ValidationError("Product code and name are required")
        if price is not None and price < 0:
            raise ValidationError("Price must not be negative")

        async with transactional(self.session):
            if await self.products.exists(Product.code == code, include_deleted=True):
                raise ConflictError(f"Product code {code} already exists")
            product = await self.products.add(
                Product(code=code, name=name, unit=unit, description=description, price=price or 0, status=1)
            )
        logger.info(f"Created product {product.code} (id={product.id})")
        return product

    async def get_product(self, product_id: int) -> Product:
        product = await self.products.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    async def list_products(
        self,
        page: int = 1,
        page_size: int = 10,
        keyword: str | None = None,
        status: int | None = None,
    ) -> tuple[list[Product], int]:
        page, page_size = clamp_page(page, page_size)
        criteria = []
        if status is not None:
            criteria.append(Product.status == status)
        if keyword:
            criteria.append(or_(Product.code.like(f"%{keyword}%"), Product.name.like(f"%{keyword}%")))
        return await self.products.paginate(
            *criteria,
            page=page,
            page_size=page_size,
            order_by=(Product.created_at.desc(), Product.id.desc()),
        )

    async def all_active_products(self) -> list[Product]:
        """Enabled products by name, for selection lists."""
        return await self.products.list(Product.status == 1, order_by=(Product.name,))

    async def update_product(self, product_id: int, **changes) -> Product:
        if changes.get("price") is not None and changes["price"] < 0:
            raise ValidationError("Price must not be negative")
        if changes.get("status") is not None and changes["status"] not in (0, 1):
            raise ValidationError("Product status must be 0 or 1")
        if "name" in changes and not changes["name"]:
            raise ValidationError("Product name is required")

        async with transactional(self.session):
            product = await self.get_product(product_id)
            for field in _UPDATABLE:
                if changes.get(field) is not None:
                    setattr(product, field, changes[field])
            await self.session.flush()
        return product

    async def delete_product(self, product_id: int) -> None:
        async with transactional(self.session):
            product = await self.get_product(product_id)
            if await self.orders.exists(ProductionOrder.product_id == product_id):
                raise ConflictError(
                    f"Product {product.code} is referenced by production orders and cannot be deleted"
                )
            await self.products.soft_delete(product)
        logger.info(f"Deleted product {product.code} (id={product_id})")
