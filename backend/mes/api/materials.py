from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from mes.api.deps import Pagination, get_current_user
from mes.core.database import get_db
from mes.models.user import User
from mes.schemas.common import MessageResponse, Page
from mes.schemas.material import (
    MaterialCreate,
    MaterialResponse,
    MaterialUpdate,
    TransactionCreate,
    TransactionResponse,
)
from mes.services.material_service import MaterialService

router = APIRouter(prefix="/api/v1/materials", tags=["materials"])


@router.post("", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(
    req: MaterialCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    material = await MaterialService(db).create_material(**req.model_dump())
    return MaterialResponse.model_validate(material)


@router.get("", response_model=Page[MaterialResponse])
async def list_materials(
    paging: Pagination = Depends(),
    type: str | None = None,
    keyword: str | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    materials, total = await MaterialService(db).list_materials(
        paging.page, paging.page_size, material_type=type, keyword=keyword
    )
    return Page(
        items=[MaterialResponse.model_validate(m) for m in materials],
        total=total,
        page=paging.page,
        page_size=paging.page_size,
    )


@router.post("/transactions", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    req: TransactionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record a stock-in or stock-out against the ledger."""
    entry = await MaterialService(db).record_transaction(**req.model_dump(), operator_id=current_user.id)
    return TransactionResponse.from_entry(entry)


@router.get("/transactions", response_model=Page[TransactionResponse])
async def list_transactions(
    paging: Pagination = Depends(),
    material_id: int | None = None,
    type: str | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entries, total = await MaterialService(db).list_transactions(
        paging.page, paging.page_size, material_id=material_id, transaction_type=type
    )
    return Page(
        items=[TransactionResponse.from_entry(e) for e in entries],
        total=total,
        page=paging.page,
        page_size=paging.page_size,
    )


@router.get("/low-stock", response_model=list[MaterialResponse])
async def low_stock(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    materials = await MaterialService(db).low_stock_materials()
    return [MaterialResponse.model_validate(m) for m in materials]


@router.get("/types", response_model=list[str])
async def material_types(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await MaterialService(db).material_types()


@router.get("/{material_id}", response_model=MaterialResponse)
async def get_material(
    material_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return MaterialResponse.model_validate(await MaterialService(db).get_material(material_id))


@router.put("/{material_id}", response_model=MaterialResponse)
async def update_material(
    material_id: int,
    req: MaterialUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    material = await MaterialService(db).update_material(material_id, **req.model_dump(exclude_unset=True))
    return MaterialResponse.model_validate(material)


@router.delete("/{material_id}", response_model=MessageResponse)
async def delete_material(
    material_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await MaterialService(db).delete_material(material_id)
    return MessageResponse(message="Material deleted")
