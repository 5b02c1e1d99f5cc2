"""
Juice Bar POS — Inventory routes
"""
from fastapi import APIRouter, Depends

from juicebar_pos.core.errors import NotFoundError
from juicebar_pos.db.store import RecordStore, get_store
from juicebar_pos.engine.catalog import update_inventory_item
from juicebar_pos.schemas.catalog import InventoryItemResponse, InventoryItemUpdateRequest

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("", response_model=list[InventoryItemResponse])
async def list_inventory(store: RecordStore = Depends(get_store)):
    async with store.transaction() as uow:
        items = await uow.inventory.get_all()
    return [InventoryItemResponse.model_validate(i) for i in items]


@router.get("/low-stock", response_model=list[InventoryItemResponse])
async def list_low_stock(store: RecordStore = Depends(get_store)):
    """Items at or below their reorder level."""
    async with store.transaction() as uow:
        items = await uow.inventory.low_stock()
    return [InventoryItemResponse.model_validate(i) for i in items]


@router.get("/{item_id}", response_model=InventoryItemResponse)
async def get_inventory_item(item_id: str, store: RecordStore = Depends(get_store)):
    async with store.transaction() as uow:
        item = await uow.inventory.get(item_id)
    if item is None:
        raise NotFoundError("InventoryItem", item_id)
    return InventoryItemResponse.model_validate(item)


@router.put("/{item_id}", response_model=InventoryItemResponse)
async def put_inventory_item(
    item_id: str,
    payload: InventoryItemUpdateRequest,
    store: RecordStore = Depends(get_store),
):
    """Stock count, reorder level or cost edit. Creating an item requires a name."""
    async with store.transaction() as uow:
        item = await update_inventory_item(uow, item_id, payload.model_dump(exclude_unset=True))
    return InventoryItemResponse.model_validate(item)
