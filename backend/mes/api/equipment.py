from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from mes.api.deps import Pagination, get_current_user
from mes.core.database import get_db
from mes.models.user import User
from mes.schemas.common import MessageResponse, Page
from mes.schemas.equipment import (
    EquipmentCreate,
    EquipmentResponse,
    EquipmentStatistics,
    EquipmentUpdate,
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceUpdate,
)
from mes.services.equipment_service import EquipmentService

router = APIRouter(prefix="/api/v1/equipment", tags=["equipment"])


@router.post("", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
async def create_equipment(
    req: EquipmentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await EquipmentService(db).create_equipment(**req.model_dump())
    return EquipmentResponse.model_validate(item)


@router.get("", response_model=Page[EquipmentResponse])
async def list_equipment(
    paging: Pagination = Depends(),
    type: str | None = None,
    status: str | None = None,
    keyword: str | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await EquipmentService(db).list_equipment(
        paging.page, paging.page_size, equipment_type=type, status=status, keyword=keyword
    )
    return Page(
        items=[EquipmentResponse.model_validate(e) for e in items],
        total=total,
        page=paging.page,
        page_size=paging.page_size,
    )


@router.get("/statistics", response_model=EquipmentStatistics)
async def equipment_statistics(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EquipmentService(db).statistics()


@router.get("/types", response_model=list[str])
async def equipment_types(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EquipmentService(db).equipment_types()


@router.get("/maintenance-types", response_model=list[str])
async def maintenance_types(current_user: User = Depends(get_current_user)):
    return EquipmentService.maintenance_types()


@router.get("/statuses", response_model=list[str])
async def equipment_statuses(current_user: User = Depends(get_current_user)):
    return EquipmentService.equipment_statuses()


@router.get("/upcoming-maintenance", response_model=list[MaintenanceResponse])
async def upcoming_maintenance(
    days: int = Query(7),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    records = await EquipmentService(db).upcoming_maintenance(days)
    return [MaintenanceResponse.from_record(r) for r in records]


# Maintenance records

@router.post("/maintenance", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance(
    req: MaintenanceCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = req.model_dump()
    data["maintainer_id"] = data["maintainer_id"] or current_user.id
    record = await EquipmentService(db).create_maintenance(**data)
    return MaintenanceResponse.from_record(record)


@router.get("/maintenance", response_model=Page[MaintenanceResponse])
async def list_maintenance(
    paging: Pagination = Depends(),
    equipment_id: int | None = None,
    maintainer_id: int | None = None,
    type: str | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    records, total = await EquipmentService(db).list_maintenance(
        paging.page,
        paging.page_size,
        equipment_id=equipment_id,
        maintainer_id=maintainer_id,
        maintenance_type=type,
    )
    return Page(
        items=[MaintenanceResponse.from_record(r) for r in records],
        total=total,
        page=paging.page,
        page_size=paging.page_size,
    )


@router.get("/maintenance/{record_id}", response_model=MaintenanceResponse)
async def get_maintenance(
    record_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return MaintenanceResponse.from_record(await EquipmentService(db).get_maintenance(record_id))


@router.put("/maintenance/{record_id}", response_model=MaintenanceResponse)
async def update_maintenance(
    record_id: int,
    req: MaintenanceUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    record = await EquipmentService(db).update_maintenance(record_id, **req.model_dump(exclude_unset=True))
    return MaintenanceResponse.from_record(record)


@router.delete("/maintenance/{record_id}", response_model=MessageResponse)
async def delete_maintenance(
    record_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await EquipmentService(db).delete_maintenance(record_id)
    return MessageResponse(message="Maintenance record deleted")


@router.get("/{equipment_id}", response_model=EquipmentResponse)
async def get_equipment(
    equipment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return EquipmentResponse.model_validate(await EquipmentService(db).get_equipment(equipment_id))


@router.put("/{equipment_id}", response_model=EquipmentResponse)
async def update_equipment(
    equipment_id: int,
    req: EquipmentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await EquipmentService(db).update_equipment(equipment_id, **req.model_dump(exclude_unset=True))
    return EquipmentResponse.model_validate(item)


@router.delete("/{equipment_id}", response_model=MessageResponse)
async def delete_equipment(
    equipment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await EquipmentService(db).delete_equipment(equipment_id)
    return MessageResponse(message="Equipment deleted")
