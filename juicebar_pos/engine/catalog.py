"""
Juice Bar POS — Catalog and inventory edits
"""
import logging
from datetime import date

from juicebar_pos.core.errors import NotFoundError, ValidationError
from juicebar_pos.core.policies import SalesPolicy, get_policy
from juicebar_pos.db.store import UnitOfWork
from juicebar_pos.models.catalog import InventoryItem, Product
from juicebar_pos.models.records import Prediction

logger = logging.getLogger(__name__)

_NON_NEGATIVE_INVENTORY_FIELDS = ("qty", "reorder_level", "cost_per_unit")
_INVENTORY_FIELDS = ("name", "unit") + _NON_NEGATIVE_INVENTORY_FIELDS


async def update_inventory_item(uow: UnitOfWork, item_id: str, changes: dict) -> InventoryItem:
    """
    Apply a stock count or cost edit. Unknown ids are created when name is
    supplied, otherwise NotFoundError.
    """
    for field in _NON_NEGATIVE_INVENTORY_FIELDS:
        value = changes.get(field)
        if value is not None and value < 0:
            raise ValidationError(f"Inventory '{item_id}': {field} must be >= 0, got {value}.")

    item = await uow.inventory.get(item_id)
    if item is None:
        if not changes.get("name"):
            raise NotFoundError("InventoryItem", item_id)
        item = InventoryItem(id=item_id, name=changes["name"])

    for field in _INVENTORY_FIELDS:
        if changes.get(field) is not None:
            setattr(item, field, changes[field])

    item = await uow.inventory.put(item)
    logger.info("Inventory %s updated: %s", item_id, {k: v for k, v in changes.items() if v is not None})
    return item


async def upsert_product(
    uow: UnitOfWork, product_id: str, changes: dict, policy: SalesPolicy | None = None
) -> Product:
    """New products start at the configured default markup unless one is given."""
    for field in ("price", "markup"):
        value = changes.get(field)
        if value is not None and value < 0:
            raise ValidationError(f"Product '{product_id}': {field} must be >= 0, got {value}.")

    product = await uow.products.get(product_id)
    if product is None:
        if not changes.get("name"):
            raise NotFoundError("Product", product_id)
        policy = policy or get_policy()
        product = Product(id=product_id, name=changes["name"], markup=policy.default_markup)

    for field in ("name", "price", "markup", "image_url"):
        if changes.get(field) is not None:
            setattr(product, field, changes[field])

    return await uow.products.put(product)


async def add_prediction(
    uow: UnitOfWork,
    product_id: str,
    for_date: date,
    predicted_units: int,
    confidence: float | None = None,
) -> Prediction:
    product = await uow.products.get(product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    if predicted_units < 0:
        raise ValidationError("predicted_units must be >= 0.")
    if confidence is not None and not 0 <= confidence <= 1:
        raise ValidationError("confidence must be between 0 and 1.")

    return await uow.predictions.put(Prediction(
        product_id=product_id,
        product_name=product.name,
        for_date=for_date,
        predicted_units=predicted_units,
        confidence=0.8 if confidence is None else confidence,
    ))
