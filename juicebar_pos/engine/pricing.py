"""
Juice Bar POS — Dynamic pricing engine

price = ceil(cost × (1 + markup) / unit) × unit, where cost is the sum of
cost_per_unit × qty_per_unit over the product's recipe.

The write is a compare-and-set on products.version_id. With the optimistic
lock enabled a concurrent writer forces a fresh read-compute-write; with it
disabled the write is unconditional and the last committed writer wins.
"""
import logging
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal
from typing import Sequence

from juicebar_pos.core.config import get_settings
from juicebar_pos.core.errors import NotFoundError, StaleDataError, StorageTransactionError, ValidationError
from juicebar_pos.core.optimistic_lock import with_optimistic_retry
from juicebar_pos.core.policies import SalesPolicy, get_policy
from juicebar_pos.core.quantities import as_decimal, to_float
from juicebar_pos.db.store import RecordStore, UnitOfWork
from juicebar_pos.engine.recipes import resolve_recipe
from juicebar_pos.models.catalog import Ingredient

settings = get_settings()
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceQuote:
    product_id: str
    new_price: float
    cost: float
    previous_price: float


def round_up_to_unit(amount: Decimal, unit: int) -> Decimal:
    unit_dec = as_decimal(unit)
    return (amount / unit_dec).to_integral_value(rounding=ROUND_CEILING) * unit_dec


def price_from_cost(cost, markup, unit: int) -> Decimal:
    """117.4 at 30% markup -> 152.62 -> 155 with a unit of 5."""
    raw = as_decimal(cost) * (Decimal(1) + as_decimal(markup))
    return round_up_to_unit(raw, unit)


async def recipe_cost(
    uow: UnitOfWork,
    product_id: str,
    recipe: Sequence[Ingredient],
    policy: SalesPolicy | None = None,
) -> Decimal:
    policy = policy or get_policy()
    inventory = await uow.inventory.get_many(i.inventory_item_id for i in recipe)
    cost = Decimal(0)
    for ingredient in recipe:
        item = inventory.get(ingredient.inventory_item_id)
        if item is None:
            policy.on_missing_ingredient(product_id, ingredient.inventory_item_id, "cost calculation")
            continue
        cost += as_decimal(item.cost_per_unit) * as_decimal(ingredient.qty_per_unit)
    return cost


async def estimate_cost(uow: UnitOfWork, product_id: str, policy: SalesPolicy | None = None) -> Decimal:
    """Current ingredient cost of one unit, without touching the product."""
    if await uow.products.get(product_id) is None:
        raise NotFoundError("Product", product_id)
    recipe = await resolve_recipe(uow, product_id)
    return await recipe_cost(uow, product_id, recipe or (), policy)


class PricingEngine:
    def __init__(self, store: RecordStore, policy: SalesPolicy | None = None, optimistic_lock: bool | None = None):
        self.store = store
        self.policy = policy or get_policy()
        self.optimistic_lock = settings.PRICING_OPTIMISTIC_LOCK if optimistic_lock is None else optimistic_lock

    async def recalc_price(self, product_id: str) -> PriceQuote:
        try:
            return await self._recalc(product_id)
        except StaleDataError as exc:
            raise StorageTransactionError(
                f"Price of '{product_id}' kept changing concurrently; giving up."
            ) from exc

    @with_optimistic_retry()
    async def _recalc(self, product_id: str) -> PriceQuote:
        async with self.store.transaction() as uow:
            product = await uow.products.get(product_id)
            if product is None:
                raise NotFoundError("Product", product_id)
            read_version = product.version_id
            previous_price = product.price

            recipe = await resolve_recipe(uow, product_id)
            if recipe is None and not self.policy.allow_reprice_without_recipe:
                raise ValidationError(f"Product '{product_id}' has no recipe; cannot derive a price from cost.")

            cost = await recipe_cost(uow, product_id, recipe or (), self.policy)
            markup = product.markup
            new_price = price_from_cost(cost, markup, self.policy.price_rounding_unit)

            updated = await uow.products.compare_and_set_price(
                product_id,
                expected_version=read_version if self.optimistic_lock else None,
                price=to_float(new_price),
                last_cost=to_float(cost),
            )
            if not updated:
                raise StaleDataError("Optimistic lock conflict: product version changed concurrently.")

        logger.info(
            "Repriced %s: cost=%s markup=%s price %s -> %s",
            product_id, cost, markup, previous_price, new_price,
        )
        return PriceQuote(
            product_id=product_id,
            new_price=to_float(new_price),
            cost=to_float(cost),
            previous_price=previous_price,
        )
