from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProductCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    unit: str | None = None
    description: str | None = None
    price: float = 0


class ProductUpdate(BaseModel):
    name: str | None = None
    unit: str | None = None
    description: str | None = None
    price: float | None = None
    status: int | None = None


class ProductBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str


class ProductResponse(ProductBrief):
    unit: str | None = None
    description: str | None = None
    price: float
    status: int
    created_at: datetime
    updated_at: datetime
