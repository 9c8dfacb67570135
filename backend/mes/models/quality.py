from datetime import datetime
from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from mes.core.database import Base
from mes.models.base import TimestampMixin, SoftDeleteMixin
from mes.models.product import Product
from mes.models.production import ProductionOrder
from mes.models.user import User


class QualityStandard(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "quality_standards"
    __table_args__ = (
        UniqueConstraint("product_id", "name", name="uq_quality_standards_product_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    min_value: Mapped[float] = mapped_column(Float, nullable=False)
    max_value: Mapped[float] = mapped_column(Float, nullable=False)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    product: Mapped[Product] = relationship(lazy="selectin")

    def __init__(self, **kwargs):
        if kwargs.get("is_active") is None:
            kwargs["is_active"] = True
        super().__init__(**kwargs)


class QualityInspection(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "quality_inspections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    inspection_no: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    production_order_id: Mapped[int] = mapped_column(
        ForeignKey("production_orders.id"), nullable=False, index=True
    )
    quality_standard_id: Mapped[int] = mapped_column(
        ForeignKey("quality_standards.id"), nullable=False, index=True
    )
    inspector_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    actual_value: Mapped[float] = mapped_column(Float, nullable=False)
    result: Mapped[str] = mapped_column(String(20), nullable=False)  # pass / fail
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    inspection_time: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    production_order: Mapped[ProductionOrder] = relationship(lazy="selectin")
    quality_standard: Mapped[QualityStandard] = relationship(lazy="selectin")
    inspector: Mapped[User] = relationship(lazy="selectin")
