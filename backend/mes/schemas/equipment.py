from datetime import datetime

from pydantic import BaseModel, ConfigDict

from mes.models.equipment import MaintenanceRecord


class EquipmentCreate(BaseModel):
    code: str
    name: str
    type: str | None = None
    model: str | None = None
    manufacturer: str | None = None
    location: str | None = None
    status: str | None = None
    purchase_date: datetime | None = None
    warranty_date: datetime | None = None
    description: str | None = None


class EquipmentUpdate(BaseModel):
    name: str | None = None
    type: str | None = None
    model: str | None = None
    manufacturer: str | None = None
    location: str | None = None
    status: str | None = None
    purchase_date: datetime | None = None
    warranty_date: datetime | None = None
    description: str | None = None


class EquipmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    type: str | None = None
    model: str | None = None
    manufacturer: str | None = None
    location: str | None = None
    status: str
    purchase_date: datetime | None = None
    warranty_date: datetime | None = None
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class MaintenanceCreate(BaseModel):
    equipment_id: int
    maintainer_id: int | None = None
    type: str
    description: str
    start_time: datetime
    end_time: datetime | None = None
    cost: float = 0
    parts_replaced: str | None = None
    result: str | None = None
    next_maintenance: datetime | None = None
    remark: str | None = None


class MaintenanceUpdate(BaseModel):
    type: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    cost: float | None = None
    parts_replaced: str | None = None
    result: str | None = None
    next_maintenance: datetime | None = None
    remark: str | None = None


class MaintenanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    equipment_id: int
    equipment_code: str | None = None
    equipment_name: str | None = None
    maintainer_id: int
    maintainer_name: str | None = None
    type: str
    description: str
    start_time: datetime
    end_time: datetime | None = None
    duration: int | None = None
    cost: float
    parts_replaced: str | None = None
    result: str | None = None
    next_maintenance: datetime | None = None
    remark: str | None = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: MaintenanceRecord) -> "MaintenanceResponse":
        response = cls.model_validate(record)
        if record.equipment is not None:
            response.equipment_code = record.equipment.code
            response.equipment_name = record.equipment.name
        if record.maintainer is not None:
            response.maintainer_name = record.maintainer.username
        return response


class StatusCount(BaseModel):
    status: str
    count: int


class EquipmentStatistics(BaseModel):
    total_equipment: int
    status_stats: list[StatusCount]
    running_rate: float
    maintenance_rate: float
    fault_rate: float
    maintenance_count: int
    total_maintenance_cost: float
