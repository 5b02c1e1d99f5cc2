"""
Juice Bar POS — Dashboard and health schemas
"""
from pydantic import BaseModel

from juicebar_pos.schemas.catalog import InventoryItemResponse
from juicebar_pos.schemas.sales import PredictionResponse, SaleResponse


class TopProductResponse(BaseModel):
    product_name: str
    units: int

    model_config = {"from_attributes": True}


class DashboardResponse(BaseModel):
    day: str
    today_total: float
    today_sales_count: int
    low_stock: list[InventoryItemResponse]
    top_product: TopProductResponse | None = None
    recent_sales: list[SaleResponse]
    predictions: list[PredictionResponse]

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    dependencies: dict[str, str]
