from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from mes.api.deps import Pagination, get_current_user
from mes.core.database import get_db
from mes.models.user import User
from mes.schemas.common import MessageResponse, Page
from mes.schemas.quality import (
    InspectionCreate,
    InspectionResponse,
    InspectionUpdate,
    QualityStatistics,
    StandardCreate,
    StandardResponse,
    StandardUpdate,
)
from mes.services.quality_service import QualityService

router = APIRouter(prefix="/api/v1/quality", tags=["quality"])


# Standards

@router.post("/standards", response_model=StandardResponse, status_code=status.HTTP_201_CREATED)
async def create_standard(
    req: StandardCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    standard = await QualityService(db).create_standard(**req.model_dump())
    return StandardResponse.model_validate(standard)


@router.get("/standards", response_model=Page[StandardResponse])
async def list_standards(
    paging: Pagination = Depends(),
    product_id: int | None = None,
    type: str | None = None,
    is_active: bool | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    standards, total = await QualityService(db).list_standards(
        paging.page, paging.page_size, product_id=product_id, standard_type=type, is_active=is_active
    )
    return Page(
        items=[StandardResponse.model_validate(s) for s in standards],
        total=total,
        page=paging.page,
        page_size=paging.page_size,
    )


@router.get("/standards/types", response_model=list[str])
async def standard_types(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await QualityService(db).standard_types()


@router.get("/standards/{standard_id}", response_model=StandardResponse)
async def get_standard(
    standard_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return StandardResponse.model_validate(await QualityService(db).get_standard(standard_id))


@router.put("/standards/{standard_id}", response_model=StandardResponse)
async def update_standard(
    standard_id: int,
    req: StandardUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    standard = await QualityService(db).update_standard(standard_id, **req.model_dump(exclude_unset=True))
    return StandardResponse.model_validate(standard)


@router.delete("/standards/{standard_id}", response_model=MessageResponse)
async def delete_standard(
    standard_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await QualityService(db).delete_standard(standard_id)
    return MessageResponse(message="Quality standard deleted")


# Inspections

@router.post("/inspections", response_model=InspectionResponse, status_code=status.HTTP_201_CREATED)
async def create_inspection(
    req: InspectionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record an inspection; the caller is the inspector unless one is given."""
    data = req.model_dump()
    data["inspector_id"] = data["inspector_id"] or current_user.id
    inspection = await QualityService(db).create_inspection(**data)
    return InspectionResponse.from_inspection(inspection)


@router.get("/inspections", response_model=Page[InspectionResponse])
async def list_inspections(
    paging: Pagination = Depends(),
    production_order_id: int | None = None,
    quality_standard_id: int | None = None,
    inspector_id: int | None = None,
    result: str | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    inspections, total = await QualityService(db).list_inspections(
        paging.page,
        paging.page_size,
        production_order_id=production_order_id,
        quality_standard_id=quality_standard_id,
        inspector_id=inspector_id,
        result=result,
    )
    return Page(
        items=[InspectionResponse.from_inspection(i) for i in inspections],
        total=total,
        page=paging.page,
        page_size=paging.page_size,
    )


@router.get("/inspections/{inspection_id}", response_model=InspectionResponse)
async def get_inspection(
    inspection_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return InspectionResponse.from_inspection(await QualityService(db).get_inspection(inspection_id))


@router.put("/inspections/{inspection_id}", response_model=InspectionResponse)
async def update_inspection(
    inspection_id: int,
    req: InspectionUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    inspection = await QualityService(db).update_inspection(
        inspection_id, **req.model_dump(exclude_unset=True)
    )
    return InspectionResponse.from_inspection(inspection)


@router.delete("/inspections/{inspection_id}", response_model=MessageResponse)
async def delete_inspection(
    inspection_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await QualityService(db).delete_inspection(inspection_id)
    return MessageResponse(message="Quality inspection deleted")


@router.get("/statistics", response_model=QualityStatistics)
async def quality_statistics(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    production_order_id: int | None = None,
    quality_standard_id: int | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await QualityService(db).statistics(
        start_date=start_date,
        end_date=end_date,
        production_order_id=production_order_id,
        quality_standard_id=quality_standard_id,
    )
