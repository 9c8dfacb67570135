from datetime import datetime
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship
from mes.core.database import Base
from mes.models.base import TimestampMixin, SoftDeleteMixin


class TransactionType:
    IN = "in"
    OUT = "out"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.IN, cls.OUT]


class Material(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "materials"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_materials_current_stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    min_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Only the inventory ledger writes this column
    current_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[int] = mapped_column(Integer, default=1, nullable=False)  # 1 active, 0 inactive

    def __init__(self, **kwargs):
        kwargs.setdefault("current_stock", 0)
        kwargs.setdefault("status", 1)
        kwargs.setdefault("price", 0)
        super().__init__(**kwargs)


class MaterialTransaction(Base):
    """Ledger entry for a single stock movement. Rows are insert-only."""

    __tablename__ = "material_transactions"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_material_transactions_quantity_positive"),
        CheckConstraint("type IN ('in', 'out')", name="ck_material_transactions_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    material_id: Mapped[int] = mapped_column(ForeignKey("materials.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    total_amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0, nullable=False)
    supplier: Mapped[str | None] = mapped_column(String(100), nullable=True)
    production_order_id: Mapped[int | None] = mapped_column(
        ForeignKey("production_orders.id"), nullable=True, index=True
    )
    remark: Mapped[str | None] = mapped_column(String(500), nullable=True)
    operator_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    material: Mapped[Material] = relationship(lazy="selectin")
