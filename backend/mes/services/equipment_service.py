"""Equipment register and maintenance records."""

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from mes.core.database import transactional
from mes.core.exceptions import ConflictError, NotFoundError, ValidationError
from mes.core.pagination import clamp_page
from mes.models.equipment import Equipment, EquipmentStatus, MaintenanceRecord, MaintenanceType
from mes.models.user import User
from mes.repositories.base import Repository

logger = logging.getLogger(__name__)

EQUIPMENT_FIELDS = (
    "name", "type", "model", "manufacturer", "location", "status",
    "purchase_date", "warranty_date", "description",
)
MAINTENANCE_FIELDS = (
    "type", "description", "start_time", "end_time", "cost",
    "parts_replaced", "result", "next_maintenance", "remark",
)


class EquipmentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.equipment = Repository(session, Equipment)
        self.records = Repository(session, MaintenanceRecord)
        self.users = Repository(session, User)

    async def create_equipment(self, code: str, name: str, **fields) -> Equipment:
        if not code or not name:
            raise ValidationError("Equipment code and name are required")
        fields.setdefault("status", EquipmentStatus.RUNNING)
        if fields["status"] is None:
            fields["status"] = EquipmentStatus.RUNNING
        self._validate_status(fields["status"])

        async with transactional(self.session):
            if await self.equipment.exists(Equipment.code == code, include_deleted=True):
                raise ConflictError(f"Equipment code '{code}' already exists")
            item = await self.equipment.add(
                Equipment(code=code, name=name, **{k: v for k, v in fields.items() if k in EQUIPMENT_FIELDS})
            )
        logger.info(f"Registered equipment {code}")
        return item

    async def get_equipment(self, equipment_id: int) -> Equipment:
        item = await self.equipment.get(equipment_id)
        if item is None:
            raise NotFoundError("Equipment", equipment_id)
        return item

    async def list_equipment(
        self,
        page: int = 1,
        page_size: int = 10,
        equipment_type: str | None = None,
        status: str | None = None,
        keyword: str | None = None,
    ) -> tuple[list[Equipment], int]:
        page, page_size = clamp_page(page, page_size)
        criteria = []
        if equipment_type:
            criteria.append(Equipment.type == equipment_type)
        if status:
            criteria.append(Equipment.status == status)
        if keyword:
            criteria.append(
                or_(
                    Equipment.code.like(f"%{keyword}%"),
                    Equipment.name.like(f"%{keyword}%"),
                    Equipment.location.like(f"%{keyword}%"),
                )
            )
        return await self.equipment.paginate(
            *criteria,
            page=page,
            page_size=page_size,
            order_by=(Equipment.created_at.desc(), Equipment.id.desc()),
        )

    async def update_equipment(self, equipment_id: int, **changes) -> Equipment:
        if changes.get("status") is not None:
            self._validate_status(changes["status"])
        async with transactional(self.session):
            item = await self.get_equipment(equipment_id)
            for field in EQUIPMENT_FIELDS:
                if changes.get(field) is not None:
                    setattr(item, field, changes[field])
            if item.name == "":
                raise ValidationError("Equipment name must not be empty")
            await self.session.flush()
            await self.session.refresh(item)
        return item

    async def delete_equipment(self, equipment_id: int) -> None:
        async with transactional(self.session):
            item = await self.get_equipment(equipment_id)
            if await self.records.exists(MaintenanceRecord.equipment_id == equipment_id):
                raise ConflictError(f"Equipment {item.code} has maintenance records and cannot be deleted")
            await self.equipment.soft_delete(item)
        logger.info(f"Deleted equipment {item.code}")

    async def equipment_types(self) -> list[str]:
        return await self.equipment.distinct_values(Equipment.type)

    @staticmethod
    def equipment_statuses() -> list[str]:
        return EquipmentStatus.all()

    @staticmethod
    def maintenance_types() -> list[str]:
        return MaintenanceType.all()

    async def statistics(self) -> dict[str, Any]:
        """Equipment counts per status plus maintenance totals."""
        live = Equipment.deleted_at.is_(None)
        rows = await self.session.execute(
            select(Equipment.status, func.count())
            .where(live)
            .group_by(Equipment.status)
            .order_by(Equipment.status)
        )
        counts = dict(rows.all())
        status_stats = [{"status": status, "count": count} for status, count in counts.items()]
        total = sum(counts.values())

        def rate(status: str) -> float:
            return counts.get(status, 0) / total * 100 if total else 0.0

        live_records = MaintenanceRecord.deleted_at.is_(None)
        maintenance_count = await self.session.scalar(
            select(func.count()).select_from(MaintenanceRecord).where(live_records)
        )
        maintenance_cost = await self.session.scalar(
            select(func.coalesce(func.sum(MaintenanceRecord.cost), 0)).where(live_records)
        )
        return {
            "total_equipment": total,
            "status_stats": status_stats,
            "running_rate": rate(EquipmentStatus.RUNNING),
            "maintenance_rate": rate(EquipmentStatus.MAINTENANCE),
            "fault_rate": rate(EquipmentStatus.FAULT),
            "maintenance_count": int(maintenance_count or 0),
            "total_maintenance_cost": float(maintenance_cost or 0),
        }

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def create_maintenance(
        self,
        equipment_id: int,
        maintainer_id: int,
        type: str,
        description: str,
        start_time: datetime,
        end_time: datetime | None = None,
        cost: float = 0,
        parts_replaced: str | None = None,
        result: str | None = None,
        next_maintenance: datetime | None = None,
        remark: str | None = None,
    ) -> MaintenanceRecord:
        self._validate_maintenance(type, description, start_time, end_time, cost)
        async with transactional(self.session):
            equipment = await self.get_equipment(equipment_id)
            maintainer = await self.users.get(maintainer_id)
            if maintainer is None:
                raise NotFoundError("Maintainer", maintainer_id)
            record = await self.records.add(
                MaintenanceRecord(
                    equipment_id=equipment.id,
                    equipment=equipment,
                    maintainer_id=maintainer.id,
                    maintainer=maintainer,
                    type=type,
                    description=description,
                    start_time=start_time,
                    end_time=end_time,
                    cost=cost or 0,
                    parts_replaced=parts_replaced,
                    result=result,
                    next_maintenance=next_maintenance,
                    remark=remark,
                )
            )
        logger.info(f"Recorded {type} maintenance for equipment {equipment.code}")
        return record

    async def get_maintenance(self, record_id: int) -> MaintenanceRecord:
        record = await self.records.get(record_id)
        if record is None:
            raise NotFoundError("Maintenance record", record_id)
        return record

    async def list_maintenance(
        self,
        page: int = 1,
        page_size: int = 10,
        equipment_id: int | None = None,
        maintainer_id: int | None = None,
        maintenance_type: str | None = None,
    ) -> tuple[list[MaintenanceRecord], int]:
        page, page_size = clamp_page(page, page_size)
        criteria = []
        if equipment_id:
            criteria.append(MaintenanceRecord.equipment_id == equipment_id)
        if maintainer_id:
            criteria.append(MaintenanceRecord.maintainer_id == maintainer_id)
        if maintenance_type:
            criteria.append(MaintenanceRecord.type == maintenance_type)
        return await self.records.paginate(
            *criteria,
            page=page,
            page_size=page_size,
            order_by=(MaintenanceRecord.start_time.desc(), MaintenanceRecord.id.desc()),
        )

    async def update_maintenance(self, record_id: int, **changes) -> MaintenanceRecord:
        async with transactional(self.session):
            record = await self.get_maintenance(record_id)
            merged = {f: getattr(record, f) for f in MAINTENANCE_FIELDS}
            merged.update({k: v for k, v in changes.items() if k in MAINTENANCE_FIELDS and v is not None})
            self._validate_maintenance(
                merged["type"], merged["description"], merged["start_time"], merged["end_time"], merged["cost"]
            )
            for field, value in merged.items():
                setattr(record, field, value)
            await self.session.flush()
            await self.session.refresh(record)
        return record

    async def delete_maintenance(self, record_id: int) -> None:
        async with transactional(self.session):
            record = await self.get_maintenance(record_id)
            await self.records.soft_delete(record)
        logger.info(f"Deleted maintenance record {record_id}")

    async def upcoming_maintenance(self, days: int = 7, now: datetime | None = None) -> list[MaintenanceRecord]:
        """Records whose next maintenance falls within the coming ``days``."""
        if days < 1:
            days = 7
        now = now or datetime.utcnow()
        return await self.records.list(
            MaintenanceRecord.next_maintenance.is_not(None),
            MaintenanceRecord.next_maintenance >= now,
            MaintenanceRecord.next_maintenance <= now + timedelta(days=days),
            order_by=(MaintenanceRecord.next_maintenance.asc(),),
        )

    @staticmethod
    def _validate_status(status: str) -> None:
        if status not in EquipmentStatus.all():
            raise ValidationError(f"Equipment status must be one of {EquipmentStatus.all()}")

    @staticmethod
    def _validate_maintenance(type, description, start_time, end_time, cost) -> None:
        if type not in MaintenanceType.all():
            raise ValidationError(f"Maintenance type must be one of {MaintenanceType.all()}")
        if not description:
            raise ValidationError("Maintenance description is required")
        if end_time is not None and end_time < start_time:
            raise ValidationError("end_time must not be earlier than start_time")
        if cost is not None and cost < 0:
            raise ValidationError("Maintenance cost must not be negative")
