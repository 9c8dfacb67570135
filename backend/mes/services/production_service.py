"""Production order management.

Orders move through pending -> processing -> completed, or are cancelled
(and may be reopened). Status is either derived from reported progress or
set explicitly, following the transition table in ``order_state``.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from mes.core.database import transactional
from mes.core.exceptions import NotFoundError, OrderInProgressError, ValidationError
from mes.core.pagination import clamp_page
from mes.models.product import Product
from mes.models.production import OrderStatus, ProductionOrder
from mes.repositories.base import Repository
from mes.repositories.production_repository import (
    DocumentSequenceRepository,
    ProductionOrderRepository,
)
from mes.services import order_state

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 3

_UNSET: Any = object()


async def generate_document_no(session: AsyncSession, prefix: str, day: date | None = None) -> str:
    """Build ``<prefix><YYYYMMDD><NNNN>`` from the per-day counter.

    Must run inside the transaction that inserts the document so the
    counter row stays locked until the number is used.
    """
    day = day or datetime.utcnow().date()
    day_prefix = f"{prefix}{day.strftime('%Y%m%d')}"
    value = await DocumentSequenceRepository(session).next_value(day_prefix)
    return f"{day_prefix}{value:04d}"


def _validate_priority(priority: int) -> None:
    if not 1 <= priority <= 5:
        raise ValidationError("Priority must be between 1 and 5")


def _validate_dates(start_date: datetime | None, end_date: datetime | None) -> None:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError("end_date must not be earlier than start_date")


class ProductionService:
    """Create, track and report on production orders."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.orders = ProductionOrderRepository(session)
        self.products = Repository(session, Product)

    async def create_order(
        self,
        product_id: int,
        quantity: int,
        priority: int | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        created_by: int | None = None,
    ) -> ProductionOrder:
        """Create a pending order with nothing produced yet.

        A missing or zero priority defaults to 3.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Quantity must be a positive integer")
        if not priority:
            priority = DEFAULT_PRIORITY
        _validate_priority(priority)
        _validate_dates(start_date, end_date)

        async with transactional(self.session):
            product = await self.products.get(product_id)
            if product is None:
                raise NotFoundError("Product", product_id)

            order = await self.orders.add(
                ProductionOrder(
                    order_no=await generate_document_no(self.session, "PO"),
                    product_id=product.id,
                    product=product,
                    quantity=quantity,
                    produced=0,
                    status=OrderStatus.PENDING,
                    priority=priority,
                    start_date=start_date,
                    end_date=end_date,
                    created_by=created_by,
                )
            )
            await self.session.refresh(order)

        logger.info(f"Created production order {order.order_no} for product {product.code} x {quantity}")
        return order

    async def get_order(self, order_id: int) -> ProductionOrder:
        order = await self.orders.get(order_id)
        if order is None:
            raise NotFoundError("Production order", order_id)
        return order

    async def list_orders(
        self,
        page: int = 1,
        page_size: int = 10,
        status: str | None = None,
        keyword: str | None = None,
    ) -> tuple[list[ProductionOrder], int]:
        page, page_size = clamp_page(page, page_size)
        criteria = []
        if status:
            criteria.append(ProductionOrder.status == status)
        if keyword:
            criteria.append(ProductionOrder.order_no.like(f"%{keyword}%"))
        return await self.orders.paginate(
            *criteria,
            page=page,
            page_size=page_size,
            order_by=(
                ProductionOrder.priority.desc(),
                ProductionOrder.created_at.desc(),
                ProductionOrder.id.desc(),
            ),
        )

    async def update_order(
        self,
        order_id: int,
        produced: int | None = None,
        status: str | None = None,
        quantity: int | None = None,
        priority: int | None = None,
        start_date: datetime | None = _UNSET,
        end_date: datetime | None = _UNSET,
    ) -> ProductionOrder:
        """Report progress on an order or change it administratively.

        When ``produced`` is given the status is derived from it and any
        explicit ``status`` in the same call is ignored. Without
        ``produced``, an explicit status must follow the transition table.
        The only change accepted on a cancelled order is reopening it
        (``status="pending"`` alone).

        Raises:
            NotFoundError: the order does not exist
            OrderLockedError: the order is completed or cancelled
            OverProductionError: produced would exceed quantity
            InvalidTransitionError: explicit status not allowed from the
                current one
            ValidationError: out-of-range quantity, priority or dates
        """
        if status is not None and status not in OrderStatus.all():
            raise ValidationError(f"Unknown order status {status!r}")

        other_changes = (
            produced is not None
            or quantity is not None
            or priority is not None
            or start_date is not _UNSET
            or end_date is not _UNSET
        )

        async with transactional(self.session):
            order = await self.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Production order", order_id)

            if (
                order.status == OrderStatus.CANCELLED
                and status == OrderStatus.PENDING
                and not other_changes
            ):
                self._apply_status(order, OrderStatus.PENDING)
            else:
                self._apply_update(order, produced, status, quantity, priority, start_date, end_date)

            await self.session.flush()
            await self.session.refresh(order)

        logger.info(
            f"Updated production order {order.order_no}: status={order.status}, "
            f"produced={order.produced}/{order.quantity}"
        )
        return order

    async def report_progress(self, order_id: int, produced: int) -> ProductionOrder:
        """Shorthand for reporting the produced quantity only."""
        return await self.update_order(order_id, produced=produced)

    async def reopen_order(self, order_id: int) -> ProductionOrder:
        """Move a cancelled order back to pending."""
        return await self.update_order(order_id, status=OrderStatus.PENDING)

    async def delete_order(self, order_id: int) -> None:
        async with transactional(self.session):
            order = await self.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Production order", order_id)
            if order.status == OrderStatus.PROCESSING:
                logger.warning(f"Rejected delete of production order {order.order_no}: in progress")
                raise OrderInProgressError(f"Order {order.order_no} is in progress and cannot be deleted")
            await self.orders.soft_delete(order)
        logger.info(f"Deleted production order {order.order_no}")

    async def statistics(self, today: date | None = None) -> dict[str, Any]:
        """Status counts, today's figures and this month's daily trend."""
        today = today or datetime.utcnow().date()
        day_start = datetime.combine(today, time.min)
        day_end = day_start + timedelta(days=1)
        month_start = datetime.combine(today.replace(day=1), time.min)
        live = ProductionOrder.deleted_at.is_(None)

        status_rows = await self.session.execute(
            select(ProductionOrder.status, func.count())
            .where(live)
            .group_by(ProductionOrder.status)
            .order_by(ProductionOrder.status)
        )
        status_stats = [{"status": status, "count": count} for status, count in status_rows.all()]

        total_orders = await self.session.scalar(
            select(func.count()).where(
                live,
                ProductionOrder.created_at >= day_start,
                ProductionOrder.created_at < day_end,
            )
        )
        updated_today = (
            live,
            ProductionOrder.updated_at >= day_start,
            ProductionOrder.updated_at < day_end,
        )
        completed_orders = await self.session.scalar(
            select(func.count()).where(*updated_today, ProductionOrder.status == OrderStatus.COMPLETED)
        )
        total_produced = await self.session.scalar(
            select(func.coalesce(func.sum(ProductionOrder.produced), 0)).where(*updated_today)
        )

        day_col = func.date(ProductionOrder.updated_at)
        trend_rows = await self.session.execute(
            select(
                day_col.label("date"),
                func.coalesce(func.sum(ProductionOrder.produced), 0).label("produced"),
                func.count(case((ProductionOrder.status == OrderStatus.COMPLETED, 1))).label("completed"),
            )
            .where(live, ProductionOrder.updated_at >= month_start, ProductionOrder.updated_at < day_end)
            .group_by(day_col)
            .order_by(day_col)
        )
        monthly_trend = [
            {"date": str(row.date), "produced": int(row.produced), "completed": int(row.completed)}
            for row in trend_rows.all()
        ]

        return {
            "status_stats": status_stats,
            "today_stats": {
                "total_orders": int(total_orders or 0),
                "completed_orders": int(completed_orders or 0),
                "total_produced": int(total_produced or 0),
            },
            "monthly_trend": monthly_trend,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _apply_update(
        self,
        order: ProductionOrder,
        produced: int | None,
        status: str | None,
        quantity: int | None,
        priority: int | None,
        start_date,
        end_date,
    ) -> None:
        order_state.ensure_mutable(order.status)

        if quantity is not None and (isinstance(quantity, bool) or quantity < 1):
            raise ValidationError("Quantity must be a positive integer")
        if produced is not None and produced < 0:
            raise ValidationError("Produced quantity must not be negative")
        if priority is not None:
            _validate_priority(priority)

        new_start = order.start_date if start_date is _UNSET else start_date
        new_end = order.end_date if end_date is _UNSET else end_date
        _validate_dates(new_start, new_end)

        new_quantity = quantity if quantity is not None else order.quantity
        new_produced = produced if produced is not None else order.produced
        order_state.check_produced(new_produced, new_quantity)

        if produced is not None:
            new_status = order_state.derive_status(produced, new_quantity)
            if status is not None and status != new_status:
                logger.debug(
                    f"Order {order.order_no}: explicit status {status} superseded by derived {new_status}"
                )
        elif status is not None and status != order.status:
            order_state.check_transition(order.status, status)
            new_status = status
        else:
            new_status = order.status

        order.quantity = new_quantity
        order.produced = new_produced
        if priority is not None:
            order.priority = priority
        order.start_date = new_start
        order.end_date = new_end
        self._apply_status(order, new_status)

    @staticmethod
    def _apply_status(order: ProductionOrder, new_status: str) -> None:
        if new_status != order.status:
            logger.info(f"Order {order.order_no}: {order.status} -> {new_status}")
            order.status = new_status
