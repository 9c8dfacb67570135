from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from mes.api.deps import Pagination, get_current_user
from mes.core.database import get_db
from mes.models.user import User
from mes.schemas.common import MessageResponse, Page
from mes.schemas.production import OrderCreate, OrderResponse, OrderUpdate, ProductionStatistics
from mes.services.production_service import ProductionService

router = APIRouter(prefix="/api/v1/production", tags=["production"])


@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    req: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await ProductionService(db).create_order(**req.model_dump(), created_by=current_user.id)
    return OrderResponse.from_order(order)


@router.get("/orders", response_model=Page[OrderResponse])
async def list_orders(
    paging: Pagination = Depends(),
    status: str | None = None,
    keyword: str | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await ProductionService(db).list_orders(
        paging.page, paging.page_size, status=status, keyword=keyword
    )
    return Page(
        items=[OrderResponse.from_order(o) for o in orders],
        total=total,
        page=paging.page,
        page_size=paging.page_size,
    )


@router.get("/statistics", response_model=ProductionStatistics)
async def production_statistics(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ProductionService(db).statistics()


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return OrderResponse.from_order(await ProductionService(db).get_order(order_id))


@router.put("/orders/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: int,
    req: OrderUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Report progress or edit an order; only the fields sent are applied."""
    order = await ProductionService(db).update_order(order_id, **req.model_dump(exclude_unset=True))
    return OrderResponse.from_order(order)


@router.post("/orders/{order_id}/reopen", response_model=OrderResponse)
async def reopen_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return OrderResponse.from_order(await ProductionService(db).reopen_order(order_id))


@router.delete("/orders/{order_id}", response_model=MessageResponse)
async def delete_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ProductionService(db).delete_order(order_id)
    return MessageResponse(message="Production order deleted")
