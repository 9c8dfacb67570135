# Production orders and the per-prefix document counter
from datetime import datetime
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from mes.core.database import Base
from mes.models.base import TimestampMixin, SoftDeleteMixin
from mes.models.product import Product
from mes.models.user import User


class OrderStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.PENDING, cls.PROCESSING, cls.COMPLETED, cls.CANCELLED]


class ProductionOrder(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "production_orders"
    __table_args__ = (
        CheckConstraint("produced >= 0", name="ck_production_orders_produced_non_negative"),
        CheckConstraint("produced <= quantity", name="ck_production_orders_produced_within_quantity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_no: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    produced: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING, nullable=False, index=True)
    priority: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)

    product: Mapped[Product] = relationship(lazy="selectin")
    creator: Mapped[User | None] = relationship(lazy="selectin")

    def __init__(self, **kwargs):
        kwargs.setdefault("produced", 0)
        kwargs.setdefault("status", OrderStatus.PENDING)
        kwargs.setdefault("priority", 3)
        super().__init__(**kwargs)


class DocumentSequence(Base):
    """Last number handed out for a document prefix such as PO20240131."""

    __tablename__ = "document_sequences"

    prefix: Mapped[str] = mapped_column(String(32), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
