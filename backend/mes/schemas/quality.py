from datetime import datetime

from pydantic import BaseModel, ConfigDict

from mes.models.quality import QualityInspection
from mes.schemas.product import ProductBrief


class StandardCreate(BaseModel):
    product_id: int
    name: str
    type: str
    min_value: float
    max_value: float
    target_value: float
    unit: str | None = None
    description: str | None = None
    is_active: bool = True


class StandardUpdate(BaseModel):
    product_id: int | None = None
    name: str | None = None
    type: str | None = None
    min_value: float | None = None
    max_value: float | None = None
    target_value: float | None = None
    unit: str | None = None
    description: str | None = None
    is_active: bool | None = None


class StandardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product: ProductBrief | None = None
    name: str
    type: str
    min_value: float
    max_value: float
    target_value: float
    unit: str | None = None
    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class InspectionCreate(BaseModel):
    production_order_id: int
    quality_standard_id: int
    inspector_id: int | None = None
    actual_value: float
    result: str
    remark: str | None = None
    inspection_time: datetime | None = None


class InspectionUpdate(BaseModel):
    production_order_id: int | None = None
    quality_standard_id: int | None = None
    inspector_id: int | None = None
    actual_value: float | None = None
    result: str | None = None
    remark: str | None = None
    inspection_time: datetime | None = None


class InspectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    inspection_no: str
    production_order_id: int
    order_no: str | None = None
    quality_standard_id: int
    standard_name: str | None = None
    inspector_id: int
    inspector_name: str | None = None
    actual_value: float
    result: str
    remark: str | None = None
    inspection_time: datetime
    created_at: datetime

    @classmethod
    def from_inspection(cls, inspection: QualityInspection) -> "InspectionResponse":
        response = cls.model_validate(inspection)
        if inspection.production_order is not None:
            response.order_no = inspection.production_order.order_no
        if inspection.quality_standard is not None:
            response.standard_name = inspection.quality_standard.name
        if inspection.inspector is not None:
            response.inspector_name = inspection.inspector.username
        return response


class QualityStatistics(BaseModel):
    total_inspections: int
    passed_count: int
    failed_count: int
    pass_rate: float
    fail_rate: float
