from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from mes.models.material import MaterialTransaction


class MaterialCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    type: str | None = None
    unit: str | None = None
    price: float = 0
    min_stock: int = 0
    max_stock: int = 0
    description: str | None = None


class MaterialUpdate(BaseModel):
    code: str | None = None
    name: str | None = None
    type: str | None = None
    unit: str | None = None
    price: float | None = None
    min_stock: int | None = None
    max_stock: int | None = None
    description: str | None = None
    status: int | None = None


class MaterialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    type: str | None = None
    unit: str | None = None
    price: float
    min_stock: int
    max_stock: int
    current_stock: int
    description: str | None = None
    status: int
    created_at: datetime
    updated_at: datetime


class TransactionCreate(BaseModel):
    material_id: int
    type: str
    quantity: int
    price: float = 0
    supplier: str | None = None
    production_order_id: int | None = None
    remark: str | None = None


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    material_id: int
    material_code: str | None = None
    material_name: str | None = None
    type: str
    quantity: int
    price: float
    total_amount: float
    supplier: str | None = None
    production_order_id: int | None = None
    remark: str | None = None
    operator_id: int | None = None
    created_at: datetime

    @classmethod
    def from_entry(cls, entry: MaterialTransaction) -> "TransactionResponse":
        response = cls.model_validate(entry)
        if entry.material is not None:
            response.material_code = entry.material.code
            response.material_name = entry.material.name
        return response
