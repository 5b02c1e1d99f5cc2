"""
Juice Bar POS — Baseline catalog seed

[CONFIG DATA] loaded exactly once per database, gated by the persisted
'seeded' setting. Re-running after the flag is set is a no-op, so edits
made since the first run are never overwritten.
"""
import logging

from juicebar_pos.db.store import RecordStore
from juicebar_pos.models.catalog import Ingredient, InventoryItem, Product, Recipe

logger = logging.getLogger(__name__)

SEEDED_FLAG = "seeded"

SEED_INVENTORY = [
    {"id": "mango", "name": "Mango", "unit": "kg", "qty": 20, "reorder_level": 5, "cost_per_unit": 120},
    {"id": "sugar", "name": "Sugar", "unit": "kg", "qty": 10, "reorder_level": 2, "cost_per_unit": 45},
    {"id": "ice", "name": "Ice", "unit": "kg", "qty": 30, "reorder_level": 5, "cost_per_unit": 5},
    {"id": "milk", "name": "Milk", "unit": "L", "qty": 15, "reorder_level": 5, "cost_per_unit": 60},
    {"id": "cup", "name": "Cups", "unit": "pcs", "qty": 200, "reorder_level": 50, "cost_per_unit": 2},
]

SEED_PRODUCTS = [
    {"id": "mango-shake", "name": "Mango Shake", "price": 120, "markup": 0.35},
    {"id": "mango-juice", "name": "Mango Juice", "price": 90, "markup": 0.3},
    {"id": "sweet-lassi", "name": "Sweet Lassi", "price": 80, "markup": 0.28},
]

SEED_RECIPES = {
    "mango-shake": [("mango", 0.25), ("milk", 0.25), ("sugar", 0.03), ("ice", 0.1), ("cup", 1)],
    "mango-juice": [("mango", 0.3), ("sugar", 0.03), ("ice", 0.1), ("cup", 1)],
    "sweet-lassi": [("milk", 0.3), ("sugar", 0.04), ("ice", 0.08), ("cup", 1)],
}


async def ensure_seeded(store: RecordStore) -> bool:
    """Load the baseline catalog unless it was loaded before. True when this call seeded."""
    async with store.transaction() as uow:
        if await uow.settings.get_value(SEEDED_FLAG, False):
            return False

        for row in SEED_INVENTORY:
            await uow.inventory.put(InventoryItem(**row))
        for row in SEED_PRODUCTS:
            await uow.products.put(Product(**row))
        for product_id, ingredients in SEED_RECIPES.items():
            await uow.recipes.put(Recipe.build(
                product_id,
                [Ingredient(inventory_item_id=item_id, qty_per_unit=qty) for item_id, qty in ingredients],
            ))
        await uow.settings.set_value(SEEDED_FLAG, True)

    logger.info(
        "Seeded catalog: %d products, %d inventory items, %d recipes",
        len(SEED_PRODUCTS), len(SEED_INVENTORY), len(SEED_RECIPES),
    )
    return True
