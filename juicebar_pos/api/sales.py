"""
Juice Bar POS — Sales routes

Flow:
  1. Validate the cart (non-empty, positive integer quantities)
  2. Sale + inventory deduction commit atomically (prices snapshotted server-side)
  3. SaleCommitted published → bill sent and logged
  4. 201 with the sale and the notification outcome; a failed bill never
     turns a committed sale into an error response
"""
import logging
from fastapi import APIRouter, Depends, Query, status

from juicebar_pos.core.errors import NotFoundError
from juicebar_pos.db.store import RecordStore, get_store
from juicebar_pos.engine.sales import LineRequest, SaleEngine
from juicebar_pos.api.deps import get_sale_engine
from juicebar_pos.schemas.sales import (
    NotificationOutcomeResponse,
    SaleCreateRequest,
    SaleCreateResponse,
    SaleResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sales", tags=["sales"])


@router.post("", response_model=SaleCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_sale(payload: SaleCreateRequest, engine: SaleEngine = Depends(get_sale_engine)):
    outcome = await engine.record_sale(
        [LineRequest(product_id=i.product_id, qty=i.qty) for i in payload.items],
        payment_mode=payload.payment_mode.value,
        customer_phone=payload.customer_phone,
    )

    notification = None
    if outcome.notification is not None:
        n = outcome.notification
        notification = NotificationOutcomeResponse(
            destination=n.destination, status=n.status, log_id=n.log_id, error=n.error
        )

    return SaleCreateResponse(sale=SaleResponse.model_validate(outcome.sale), notification=notification)


@router.get("", response_model=list[SaleResponse])
async def list_sales(
    limit: int = Query(50, ge=1, le=500, description="Newest sales first"),
    store: RecordStore = Depends(get_store),
):
    async with store.transaction() as uow:
        sales = await uow.sales.recent(limit)
    return [SaleResponse.model_validate(s) for s in sales]


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(sale_id: int, store: RecordStore = Depends(get_store)):
    async with store.transaction() as uow:
        sale = await uow.sales.get(sale_id)
    if sale is None:
        raise NotFoundError("Sale", sale_id)
    return SaleResponse.model_validate(sale)
