"""
Juice Bar POS — Sale transaction engine

A sale and every inventory deduction it causes commit as one transaction:
  - READ:   products (price + name snapshot), recipes, inventory rows
  - WRITE:  sale + lines, then each consumed inventory row clamped at zero
  - COMMIT: all or nothing; a store failure leaves no sale and no deduction

Only after commit is SaleCommitted published, so the bill notification can
neither block nor roll back the sale.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence

from juicebar_pos.core.errors import InsufficientStockError, ValidationError
from juicebar_pos.core.policies import SalesPolicy, get_policy
from juicebar_pos.core.quantities import as_decimal, to_float
from juicebar_pos.db.store import RecordStore, UnitOfWork
from juicebar_pos.engine.events import EventBus, SaleCommitted, SaleLineSnapshot
from juicebar_pos.engine.notifications import NotificationOutcome
from juicebar_pos.engine.recipes import resolve_recipe
from juicebar_pos.models.catalog import InventoryItem, Product
from juicebar_pos.models.sales import PaymentMode, Sale, SaleLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineRequest:
    product_id: str
    qty: int


@dataclass
class SaleOutcome:
    sale: Sale
    handler_results: dict[str, Any] = field(default_factory=dict)

    @property
    def notification(self) -> NotificationOutcome | None:
        for result in self.handler_results.values():
            if isinstance(result, NotificationOutcome):
                return result
        return None


def _validate(lines: Sequence[LineRequest], payment_mode) -> PaymentMode:
    if not lines:
        raise ValidationError("A sale needs at least one line item.")
    for line in lines:
        if isinstance(line.qty, bool) or not isinstance(line.qty, int) or line.qty <= 0:
            raise ValidationError(
                f"Quantity for '{line.product_id}' must be a positive integer, got {line.qty!r}."
            )
    try:
        return PaymentMode(payment_mode)
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMode)
        raise ValidationError(f"Unknown payment mode '{payment_mode}'. Expected one of: {allowed}.")


def sale_total(lines: Sequence[SaleLine]) -> Decimal:
    return sum((as_decimal(line.unit_price) * line.qty for line in lines), Decimal(0))


class SaleEngine:
    def __init__(self, store: RecordStore, bus: EventBus | None = None, policy: SalesPolicy | None = None):
        self.store = store
        self.bus = bus or EventBus()
        self.policy = policy or get_policy()

    async def record_sale(
        self,
        lines: Sequence[LineRequest],
        payment_mode: str = PaymentMode.CASH.value,
        customer_phone: str | None = None,
    ) -> SaleOutcome:
        mode = _validate(lines, payment_mode)
        phone = (customer_phone or "").strip() or None

        async with self.store.transaction() as uow:
            sale = await self._write_sale(uow, lines, mode, phone)

        logger.info(
            "Sale %s committed: %d lines, total=%s, payment=%s",
            sale.id, len(sale.lines), sale.total, sale.payment_mode,
        )

        event = SaleCommitted(
            sale_id=sale.id,
            total=sale.total,
            payment_mode=sale.payment_mode,
            customer_phone=sale.customer_phone,
            created_at=sale.created_at,
            lines=tuple(
                SaleLineSnapshot(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    qty=line.qty,
                    unit_price=line.unit_price,
                )
                for line in sale.lines
            ),
        )
        results = await self.bus.publish(event)
        return SaleOutcome(sale=sale, handler_results=results)

    async def _write_sale(
        self, uow: UnitOfWork, lines: Sequence[LineRequest], mode: PaymentMode, phone: str | None
    ) -> Sale:
        products: dict[str, Product] = {}
        for line in lines:
            if line.product_id not in products:
                product = await uow.products.get(line.product_id)
                if product is None:
                    raise ValidationError(f"Unknown product '{line.product_id}' in sale.")
                products[line.product_id] = product

        # Snapshots come from the product rows, never from the caller
        sale_lines = [
            SaleLine(
                position=position,
                product_id=line.product_id,
                product_name=products[line.product_id].name,
                qty=line.qty,
                unit_price=products[line.product_id].price,
            )
            for position, line in enumerate(lines)
        ]
        sale = Sale(
            total=to_float(sale_total(sale_lines)),
            payment_mode=mode.value,
            customer_phone=phone,
            lines=sale_lines,
        )
        sale = await uow.sales.put(sale)

        demand, referenced_by = await self._consumption(uow, lines)
        stock = await self._lock_inventory(uow, demand, referenced_by)

        if not self.policy.allow_oversell:
            shortages = {
                item_id: (to_float(needed), stock[item_id].qty)
                for item_id, needed in demand.items()
                if item_id in stock and needed > as_decimal(stock[item_id].qty)
            }
            if shortages:
                raise InsufficientStockError(shortages)

        for item_id, needed in demand.items():
            item = stock.get(item_id)
            if item is None:
                continue
            remaining = max(Decimal(0), as_decimal(item.qty) - needed)
            await uow.inventory.set_quantity(item, to_float(remaining))

        return sale

    async def _consumption(
        self, uow: UnitOfWork, lines: Sequence[LineRequest]
    ) -> tuple["OrderedDict[str, Decimal]", dict[str, str]]:
        """Total quantity of each inventory item the sale consumes, in recipe order."""
        demand: OrderedDict[str, Decimal] = OrderedDict()
        referenced_by: dict[str, str] = {}
        for line in lines:
            recipe = await resolve_recipe(uow, line.product_id)
            if recipe is None:
                continue
            for ingredient in recipe:
                item_id = ingredient.inventory_item_id
                needed = as_decimal(ingredient.qty_per_unit) * line.qty
                demand[item_id] = demand.get(item_id, Decimal(0)) + needed
                referenced_by.setdefault(item_id, line.product_id)
        return demand, referenced_by

    async def _lock_inventory(
        self, uow: UnitOfWork, demand: dict[str, Decimal], referenced_by: dict[str, str]
    ) -> dict[str, InventoryItem]:
        stock: dict[str, InventoryItem] = {}
        for item_id in demand:
            item = await uow.inventory.get_for_update(item_id)
            if item is None:
                self.policy.on_missing_ingredient(referenced_by[item_id], item_id, "sale deduction")
                continue
            stock[item_id] = item
        return stock
