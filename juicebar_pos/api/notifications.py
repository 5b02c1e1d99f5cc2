"""
Juice Bar POS — Notification log and prediction routes
"""
from fastapi import APIRouter, Depends, Query, status

from juicebar_pos.db.store import RecordStore, get_store
from juicebar_pos.engine.catalog import add_prediction
from juicebar_pos.schemas.sales import NotificationLogResponse, PredictionRequest, PredictionResponse

router = APIRouter(tags=["notifications"])


@router.get("/notifications", response_model=list[NotificationLogResponse])
async def list_notifications(
    limit: int = Query(100, ge=1, le=1000),
    store: RecordStore = Depends(get_store),
):
    """Every outbound message attempt, newest first."""
    async with store.transaction() as uow:
        entries = await uow.notifications.recent(limit)
    return [NotificationLogResponse.model_validate(e) for e in entries]


@router.get("/predictions", response_model=list[PredictionResponse], tags=["predictions"])
async def list_predictions(store: RecordStore = Depends(get_store)):
    async with store.transaction() as uow:
        predictions = await uow.predictions.get_all()
    return [PredictionResponse.model_validate(p) for p in predictions]


@router.post(
    "/predictions",
    response_model=PredictionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["predictions"],
)
async def create_prediction(payload: PredictionRequest, store: RecordStore = Depends(get_store)):
    """Store a forecast produced elsewhere so the dashboard can show it."""
    async with store.transaction() as uow:
        prediction = await add_prediction(
            uow, payload.product_id, payload.date, payload.predicted_units, payload.confidence
        )
    return PredictionResponse.model_validate(prediction)
