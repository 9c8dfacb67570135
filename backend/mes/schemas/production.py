from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from mes.models.production import ProductionOrder


class OrderCreate(BaseModel):
    product_id: int
    quantity: int
    priority: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class OrderUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    produced: int | None = None
    status: str | None = None
    quantity: int | None = None
    priority: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_no: str
    product_id: int
    product_code: str | None = None
    product_name: str | None = None
    quantity: int
    produced: int
    status: str
    priority: int
    start_date: datetime | None = None
    end_date: datetime | None = None
    created_by: int | None = None
    creator_name: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order: ProductionOrder) -> "OrderResponse":
        response = cls.model_validate(order)
        if order.product is not None:
            response.product_code = order.product.code
            response.product_name = order.product.name
        if order.creator is not None:
            response.creator_name = order.creator.username
        return response


class StatusCount(BaseModel):
    status: str
    count: int


class TodayStats(BaseModel):
    total_orders: int
    completed_orders: int
    total_produced: int


class DailyTrend(BaseModel):
    date: str
    produced: int
    completed: int


class ProductionStatistics(BaseModel):
    status_stats: list[StatusCount] = Field(default_factory=list)
    today_stats: TodayStats
    monthly_trend: list[DailyTrend] = Field(default_factory=list)
