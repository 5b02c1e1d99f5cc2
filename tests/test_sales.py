"""
Sale transaction engine: atomic sale write + recipe-driven inventory deduction.
"""
import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from conftest import RecordingChannel, sale_count, stock_levels
from juicebar_pos.core.errors import InsufficientStockError, StorageTransactionError, ValidationError
from juicebar_pos.core.policies import SalesPolicy
from juicebar_pos.db.store import InventoryRepository, SaleRepository
from juicebar_pos.engine.events import EventBus, SaleCommitted
from juicebar_pos.engine.notifications import BillNotifier
from juicebar_pos.engine.recipes import save_recipe
from juicebar_pos.engine.sales import LineRequest, SaleEngine
from juicebar_pos.models.catalog import Ingredient, Product


def _engine(store, policy=None, channel=None):
    bus = EventBus()
    if channel is not None:
        bus.subscribe(SaleCommitted.event_type, BillNotifier(store, channel))
    return SaleEngine(store, bus=bus, policy=policy or SalesPolicy())


@pytest.mark.asyncio
async def test_two_mango_shakes_deduct_recipe_quantities(seeded_store):
    before = await stock_levels(seeded_store)

    outcome = await _engine(seeded_store).record_sale([LineRequest("mango-shake", 2)], "Cash")

    after = await stock_levels(seeded_store)
    assert before["mango"] - after["mango"] == pytest.approx(0.5)
    assert before["milk"] - after["milk"] == pytest.approx(0.5)
    assert before["sugar"] - after["sugar"] == pytest.approx(0.06)
    assert before["ice"] - after["ice"] == pytest.approx(0.2)
    assert before["cup"] - after["cup"] == pytest.approx(2)
    assert after["sugar"] == 9.94

    assert await sale_count(seeded_store) == 1
    assert outcome.sale.total == 240
    assert outcome.notification is None


@pytest.mark.asyncio
async def test_total_is_recomputed_from_current_prices(seeded_store):
    lines = [LineRequest("mango-shake", 2), LineRequest("sweet-lassi", 3), LineRequest("mango-juice", 1)]

    outcome = await _engine(seeded_store).record_sale(lines, "UPI")

    sale = outcome.sale
    assert sale.total == sum(line.qty * line.unit_price for line in sale.lines)
    assert sale.total == 2 * 120 + 3 * 80 + 90
    assert [line.product_name for line in sale.lines] == ["Mango Shake", "Sweet Lassi", "Mango Juice"]
    assert sale.payment_mode == "UPI"


@pytest.mark.asyncio
async def test_line_prices_are_snapshots(seeded_store):
    engine = _engine(seeded_store)
    first = await engine.record_sale([LineRequest("mango-juice", 1)])

    async with seeded_store.transaction() as uow:
        product = await uow.products.get("mango-juice")
        product.price = 95

    second = await engine.record_sale([LineRequest("mango-juice", 1)])

    async with seeded_store.transaction() as uow:
        stored_first = await uow.sales.get(first.sale.id)
    assert stored_first.lines[0].unit_price == 90
    assert second.sale.lines[0].unit_price == 95


@pytest.mark.asyncio
async def test_product_without_recipe_sells_without_deduction(seeded_store):
    async with seeded_store.transaction() as uow:
        await uow.products.put(Product(id="water", name="Water Bottle", price=20))
    before = await stock_levels(seeded_store)

    outcome = await _engine(seeded_store).record_sale([LineRequest("water", 4)])

    assert await stock_levels(seeded_store) == before
    assert outcome.sale.total == 80
    assert await sale_count(seeded_store) == 1


@pytest.mark.asyncio
async def test_oversell_clamps_stock_at_zero(seeded_store):
    outcome = await _engine(seeded_store).record_sale([LineRequest("sweet-lassi", 500)])

    after = await stock_levels(seeded_store)
    assert all(qty >= 0 for qty in after.values())
    assert after["milk"] == 0
    assert after["cup"] == 0
    assert outcome.sale.total == 500 * 80


@pytest.mark.asyncio
async def test_repeated_sales_never_go_negative(seeded_store):
    engine = _engine(seeded_store)
    for _ in range(4):
        await engine.record_sale([LineRequest("mango-shake", 25), LineRequest("mango-juice", 10)])

    after = await stock_levels(seeded_store)
    assert min(after.values()) >= 0
    assert after["mango"] == 0
    assert await sale_count(seeded_store) == 4


@pytest.mark.asyncio
async def test_oversell_switched_off_rejects_and_changes_nothing(seeded_store):
    before = await stock_levels(seeded_store)
    engine = _engine(seeded_store, policy=SalesPolicy(allow_oversell=False))

    with pytest.raises(InsufficientStockError) as excinfo:
        await engine.record_sale([LineRequest("sweet-lassi", 51)])

    assert "milk" in excinfo.value.shortages
    assert await stock_levels(seeded_store) == before
    assert await sale_count(seeded_store) == 0


@pytest.mark.asyncio
async def test_oversell_switched_off_counts_demand_across_lines(seeded_store):
    engine = _engine(seeded_store, policy=SalesPolicy(allow_oversell=False))

    # 40 shakes + 20 lassis need 10 + 6 = 16 L of milk, only 15 in stock
    with pytest.raises(InsufficientStockError):
        await engine.record_sale([LineRequest("mango-shake", 40), LineRequest("sweet-lassi", 20)])

    await engine.record_sale([LineRequest("mango-shake", 40), LineRequest("sweet-lassi", 16)])
    assert (await stock_levels(seeded_store))["milk"] == pytest.approx(0.2)


@pytest.mark.asyncio
async def test_storage_failure_mid_deduction_leaves_no_trace(seeded_store, monkeypatch):
    channel = RecordingChannel()
    original = InventoryRepository.set_quantity
    calls = {"count": 0}

    async def flaky_set_quantity(self, item, qty):
        calls["count"] += 1
        if calls["count"] == 2:
            raise OperationalError("UPDATE inventory_items", {}, Exception("disk I/O error"))
        return await original(self, item, qty)

    monkeypatch.setattr(InventoryRepository, "set_quantity", flaky_set_quantity)
    before = await stock_levels(seeded_store)

    with pytest.raises(StorageTransactionError):
        await _engine(seeded_store, channel=channel).record_sale(
            [LineRequest("mango-shake", 2)], customer_phone="9876543210"
        )

    assert calls["count"] == 2
    assert await stock_levels(seeded_store) == before
    assert await sale_count(seeded_store) == 0
    assert channel.sent == []


@pytest.mark.asyncio
async def test_storage_failure_writing_sale_leaves_inventory_untouched(seeded_store, monkeypatch):
    async def broken_put(self, record):
        raise OperationalError("INSERT INTO sales", {}, Exception("database is locked"))

    monkeypatch.setattr(SaleRepository, "put", broken_put)
    before = await stock_levels(seeded_store)

    with pytest.raises(StorageTransactionError):
        await _engine(seeded_store).record_sale([LineRequest("mango-juice", 1)])

    assert await stock_levels(seeded_store) == before


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "lines, message",
    [
        ([], "at least one"),
        ([LineRequest("mango-shake", 0)], "positive integer"),
        ([LineRequest("mango-shake", -1)], "positive integer"),
        ([LineRequest("mango-shake", 1.5)], "positive integer"),
        ([LineRequest("unicorn-smoothie", 1)], "Unknown product"),
    ],
)
async def test_invalid_carts_are_rejected(seeded_store, lines, message):
    with pytest.raises(ValidationError, match=message):
        await _engine(seeded_store).record_sale(lines)
    assert await sale_count(seeded_store) == 0


@pytest.mark.asyncio
async def test_unknown_payment_mode_is_rejected(seeded_store):
    with pytest.raises(ValidationError, match="payment mode"):
        await _engine(seeded_store).record_sale([LineRequest("mango-shake", 1)], "Barter")


@pytest.mark.asyncio
async def test_dangling_ingredient_is_skipped_by_default(seeded_store):
    async with seeded_store.transaction() as uow:
        await save_recipe(uow, "mango-juice", [Ingredient("mango", 0.3), Ingredient("saffron", 0.01)])
    before = await stock_levels(seeded_store)

    await _engine(seeded_store).record_sale([LineRequest("mango-juice", 2)])

    after = await stock_levels(seeded_store)
    assert after["mango"] == pytest.approx(before["mango"] - 0.6)
    assert "saffron" not in after


@pytest.mark.asyncio
async def test_dangling_ingredient_rejects_sale_in_strict_mode(seeded_store):
    async with seeded_store.transaction() as uow:
        await save_recipe(uow, "mango-juice", [Ingredient("mango", 0.3), Ingredient("saffron", 0.01)])
    before = await stock_levels(seeded_store)

    engine = _engine(seeded_store, policy=SalesPolicy(strict_ingredient_references=True))
    with pytest.raises(ValidationError, match="saffron"):
        await engine.record_sale([LineRequest("mango-juice", 2)])

    assert await stock_levels(seeded_store) == before
    assert await sale_count(seeded_store) == 0


@pytest.mark.asyncio
async def test_concurrent_sales_serialize_at_the_store(seeded_store):
    engine = _engine(seeded_store)

    await asyncio.gather(*(engine.record_sale([LineRequest("mango-shake", 1)]) for _ in range(5)))

    after = await stock_levels(seeded_store)
    assert after["mango"] == pytest.approx(20 - 5 * 0.25)
    assert after["cup"] == pytest.approx(200 - 5)
    assert await sale_count(seeded_store) == 5


@pytest.mark.asyncio
async def test_sales_are_append_only(seeded_store):
    outcome = await _engine(seeded_store).record_sale([LineRequest("mango-shake", 1)])

    async with seeded_store.transaction() as uow:
        with pytest.raises(ValidationError, match="append-only"):
            await uow.sales.delete(outcome.sale.id)

    assert await sale_count(seeded_store) == 1
