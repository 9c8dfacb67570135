from datetime import datetime
from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship
from mes.core.database import Base
from mes.models.base import TimestampMixin, SoftDeleteMixin
from mes.models.user import User


class EquipmentStatus:
    RUNNING = "running"
    STOPPED = "stopped"
    MAINTENANCE = "maintenance"
    FAULT = "fault"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.RUNNING, cls.STOPPED, cls.MAINTENANCE, cls.FAULT]


class MaintenanceType:
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    EMERGENCY = "emergency"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.PREVENTIVE, cls.CORRECTIVE, cls.EMERGENCY]


class Equipment(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "equipment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    model: Mapped[str | None] = mapped_column(String(50), nullable=True)
    manufacturer: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=EquipmentStatus.RUNNING, nullable=False)
    purchase_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    warranty_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class MaintenanceRecord(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "maintenance_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    equipment_id: Mapped[int] = mapped_column(ForeignKey("equipment.id"), nullable=False, index=True)
    maintainer_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cost: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    parts_replaced: Mapped[str | None] = mapped_column(Text, nullable=True)
    result: Mapped[str | None] = mapped_column(String(200), nullable=True)
    next_maintenance: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)

    equipment: Mapped[Equipment] = relationship(lazy="selectin")
    maintainer: Mapped[User] = relationship(lazy="selectin")

    @property
    def duration(self) -> int | None:
        """Maintenance duration in whole minutes, once finished."""
        if self.end_time is None:
            return None
        return int((self.end_time - self.start_time).total_seconds() // 60)
