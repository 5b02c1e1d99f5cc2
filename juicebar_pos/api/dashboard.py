"""
Juice Bar POS — Dashboard route
"""
from fastapi import APIRouter, Depends

from juicebar_pos.db.store import RecordStore, get_store
from juicebar_pos.engine.dashboard import dashboard_summary
from juicebar_pos.schemas.dashboard import DashboardResponse

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(store: RecordStore = Depends(get_store)):
    async with store.transaction() as uow:
        summary = await dashboard_summary(uow)
    return DashboardResponse.model_validate(summary)
