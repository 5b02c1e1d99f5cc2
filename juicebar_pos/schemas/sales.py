"""
Juice Bar POS — Sales and notification schemas
"""
import datetime as dt
from datetime import datetime

from pydantic import BaseModel, Field

from juicebar_pos.models.sales import PaymentMode


class SaleLineRequest(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64, examples=["mango-shake"])
    qty: int = Field(..., ge=1, le=1000)


class SaleCreateRequest(BaseModel):
    items: list[SaleLineRequest] = Field(..., min_length=1, max_length=50)
    payment_mode: PaymentMode = PaymentMode.CASH
    customer_phone: str | None = Field(None, max_length=32, examples=["9876543210"])


class SaleLineResponse(BaseModel):
    product_id: str
    product_name: str
    qty: int
    unit_price: float

    model_config = {"from_attributes": True}


class SaleResponse(BaseModel):
    id: int
    created_at: datetime
    total: float
    payment_mode: str
    customer_phone: str | None = None
    lines: list[SaleLineResponse]

    model_config = {"from_attributes": True}


class NotificationOutcomeResponse(BaseModel):
    destination: str
    status: str
    log_id: int | None = None
    error: str | None = None


class SaleCreateResponse(BaseModel):
    sale: SaleResponse
    notification: NotificationOutcomeResponse | None = None


class NotificationLogResponse(BaseModel):
    id: int
    destination: str
    message: str
    context: str
    status: str
    error: str | None = None
    sale_id: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PredictionRequest(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    date: dt.date
    predicted_units: int = Field(..., ge=0)
    confidence: float | None = Field(None, ge=0, le=1)


class PredictionResponse(BaseModel):
    id: int
    product_id: str
    product_name: str
    date: dt.date = Field(validation_alias="for_date")
    predicted_units: int
    confidence: float

    model_config = {"from_attributes": True}
