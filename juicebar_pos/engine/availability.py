"""
Juice Bar POS — Stock availability calculator

How many units of a product the current inventory can still make.
Pure functions over a snapshot; the async helpers only take that snapshot.
"""
from decimal import ROUND_FLOOR
from typing import Mapping, Sequence, Union

from juicebar_pos.core.policies import SalesPolicy, get_policy
from juicebar_pos.core.quantities import as_decimal
from juicebar_pos.db.store import UnitOfWork
from juicebar_pos.engine.recipes import resolve_recipe
from juicebar_pos.models.catalog import Ingredient, InventoryItem


class _Unlimited:
    """Availability of a product that consumes no stock. Larger than any count."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNLIMITED"

    def __eq__(self, other) -> bool:
        return other is self

    def __hash__(self) -> int:
        return hash("UNLIMITED")

    def __gt__(self, other) -> bool:
        return other is not self

    def __ge__(self, other) -> bool:
        return True

    def __lt__(self, other) -> bool:
        return False

    def __le__(self, other) -> bool:
        return other is self


UNLIMITED = _Unlimited()

Availability = Union[int, _Unlimited]


def compute_availability(
    recipe: Sequence[Ingredient] | None,
    inventory: Mapping[str, InventoryItem],
    policy: SalesPolicy | None = None,
) -> Availability:
    if recipe is None:
        policy = policy or get_policy()
        return UNLIMITED if policy.no_recipe_means_unlimited else 0

    available: int | None = None
    for ingredient in recipe:
        item = inventory.get(ingredient.inventory_item_id)
        if item is None:
            return 0
        per_unit = as_decimal(ingredient.qty_per_unit)
        if per_unit <= 0:
            # save_recipe refuses these; an old row should not divide by zero
            return 0
        possible = int((as_decimal(item.qty) / per_unit).to_integral_value(rounding=ROUND_FLOOR))
        possible = max(possible, 0)
        available = possible if available is None else min(available, possible)

    # A recipe with no ingredients yet is not sellable stock
    return 0 if available is None else available


def can_fulfil(availability: Availability, qty: int) -> bool:
    return availability is UNLIMITED or availability >= qty


async def availability_for(uow: UnitOfWork, product_id: str, policy: SalesPolicy | None = None) -> Availability:
    recipe = await resolve_recipe(uow, product_id)
    if recipe is None:
        return compute_availability(None, {}, policy)
    inventory = await uow.inventory.get_many(i.inventory_item_id for i in recipe)
    return compute_availability(recipe, inventory, policy)


async def catalog_availability(uow: UnitOfWork, policy: SalesPolicy | None = None) -> dict[str, Availability]:
    """Availability of every product from one inventory snapshot."""
    products = await uow.products.get_all()
    recipes = {r.product_id: r.lines for r in await uow.recipes.get_all()}
    inventory = {item.id: item for item in await uow.inventory.get_all()}
    return {
        product.id: compute_availability(recipes.get(product.id), inventory, policy)
        for product in products
    }
