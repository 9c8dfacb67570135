from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from mes.api.deps import Pagination, get_current_user
from mes.core.database import get_db
from mes.models.user import User
from mes.schemas.common import MessageResponse, Page
from mes.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from mes.services.product_service import ProductService

router = APIRouter(prefix="/api/v1/products", tags=["products"])


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    req: ProductCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).create_product(**req.model_dump())
    return ProductResponse.model_validate(product)


@router.get("", response_model=Page[ProductResponse])
async def list_products(
    paging: Pagination = Depends(),
    keyword: str | None = None,
    status: int | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    products, total = await ProductService(db).list_products(
        paging.page, paging.page_size, keyword=keyword, status=status
    )
    return Page(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=paging.page,
        page_size=paging.page_size,
    )


@router.get("/all", response_model=list[ProductResponse])
async def all_products(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Enabled products, for selection lists."""
    products = await ProductService(db).all_active_products()
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ProductResponse.model_validate(await ProductService(db).get_product(product_id))


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    req: ProductUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).update_product(product_id, **req.model_dump(exclude_unset=True))
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ProductService(db).delete_product(product_id)
    return MessageResponse(message="Product deleted")
