"""
Record store: one UnitOfWork per transaction, commit on exit, rollback on any error.
"""
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import stock_levels
from juicebar_pos.core.errors import StorageTransactionError, ValidationError
from juicebar_pos.models.catalog import InventoryItem
from juicebar_pos.models.records import Prediction
from juicebar_pos.models.sales import NotificationLogEntry, Sale, SaleLine


def _sale(total=120.0, **kwargs):
    return Sale(
        total=total,
        payment_mode="Cash",
        lines=[SaleLine(position=0, product_id="mango-shake", product_name="Mango Shake",
                        qty=1, unit_price=total)],
        **kwargs,
    )


@pytest.mark.asyncio
async def test_domain_error_rolls_back_every_collection(seeded_store):
    before = await stock_levels(seeded_store)

    with pytest.raises(ValidationError):
        async with seeded_store.transaction() as uow:
            mango = await uow.inventory.get("mango")
            await uow.inventory.set_quantity(mango, 0)
            await uow.sales.put(_sale())
            raise ValidationError("cart rejected")

    assert await stock_levels(seeded_store) == before
    async with seeded_store.transaction() as uow:
        assert await uow.sales.get_all() == []


@pytest.mark.asyncio
async def test_database_error_becomes_storage_error(seeded_store):
    with pytest.raises(StorageTransactionError) as excinfo:
        async with seeded_store.transaction() as uow:
            uow.session.add(InventoryItem(id="extra", name="Extra"))
            # same primary key twice in one flush
            uow.session.add(InventoryItem(id="mango", name="Duplicate mango"))
            await uow.session.flush()

    assert isinstance(excinfo.value.__cause__, IntegrityError)
    async with seeded_store.transaction() as uow:
        assert await uow.inventory.get("extra") is None


@pytest.mark.asyncio
async def test_put_upserts_mutable_records(seeded_store):
    async with seeded_store.transaction() as uow:
        await uow.inventory.put(InventoryItem(id="mango", name="Alphonso Mango", unit="kg",
                                              qty=12, reorder_level=4, cost_per_unit=150))

    async with seeded_store.transaction() as uow:
        mango = await uow.inventory.get("mango")
        assert (mango.name, mango.qty, mango.cost_per_unit) == ("Alphonso Mango", 12, 150)
        assert await uow.inventory.delete("mango") is True
        assert await uow.inventory.delete("mango") is False


@pytest.mark.asyncio
async def test_append_only_collections_reject_updates(seeded_store):
    async with seeded_store.transaction() as uow:
        sale = await uow.sales.put(_sale())
        sale_id = sale.id

    async with seeded_store.transaction() as uow:
        with pytest.raises(ValidationError, match="immutable"):
            await uow.sales.put(_sale(total=1.0, id=sale_id))
        with pytest.raises(ValidationError, match="append-only"):
            await uow.notifications.delete(1)
        with pytest.raises(ValidationError, match="append-only"):
            await uow.predictions.delete(1)

    async with seeded_store.transaction() as uow:
        assert (await uow.sales.get(sale_id)).total == 120.0


@pytest.mark.asyncio
async def test_recent_sales_newest_first(seeded_store):
    async with seeded_store.transaction() as uow:
        for total in (10.0, 20.0, 30.0):
            await uow.sales.put(_sale(total=total))

    async with seeded_store.transaction() as uow:
        assert [s.total for s in await uow.sales.recent(2)] == [30.0, 20.0]
        assert len(await uow.sales.recent()) == 3


@pytest.mark.asyncio
async def test_sales_between_uses_half_open_window(seeded_store):
    noon = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    async with seeded_store.transaction() as uow:
        await uow.sales.put(_sale(total=1.0, created_at=noon - timedelta(hours=13)))
        await uow.sales.put(_sale(total=2.0, created_at=noon))
        await uow.sales.put(_sale(total=3.0, created_at=noon + timedelta(hours=12)))

    async with seeded_store.transaction() as uow:
        window = await uow.sales.between(noon - timedelta(hours=12), noon + timedelta(hours=12))
    assert [s.total for s in window] == [2.0]


@pytest.mark.asyncio
async def test_low_stock_includes_items_at_reorder_level(seeded_store):
    async with seeded_store.transaction() as uow:
        await uow.inventory.set_quantity(await uow.inventory.get("milk"), 5)
        await uow.inventory.set_quantity(await uow.inventory.get("ice"), 5.5)

    async with seeded_store.transaction() as uow:
        assert [i.id for i in await uow.inventory.low_stock()] == ["milk"]


@pytest.mark.asyncio
async def test_get_many_skips_unknown_ids(seeded_store):
    async with seeded_store.transaction() as uow:
        found = await uow.inventory.get_many(["mango", "saffron", "mango"])
    assert list(found) == ["mango"]


@pytest.mark.asyncio
async def test_settings_values_round_trip(store):
    async with store.transaction() as uow:
        assert await uow.settings.get_value("missing", "fallback") == "fallback"
        await uow.settings.set_value("receipt", {"footer": "See you soon", "copies": 1})

    async with store.transaction() as uow:
        assert await uow.settings.get_value("receipt") == {"footer": "See you soon", "copies": 1}
        await uow.settings.set_value("receipt", None)

    async with store.transaction() as uow:
        assert await uow.settings.get_value("receipt", "fallback") is None


@pytest.mark.asyncio
async def test_predictions_for_dates(seeded_store):
    today = date(2024, 5, 1)
    async with seeded_store.transaction() as uow:
        for offset, units in ((0, 40), (1, 55), (2, 70)):
            await uow.predictions.put(Prediction(
                product_id="mango-shake", product_name="Mango Shake",
                for_date=today + timedelta(days=offset), predicted_units=units,
            ))
        await uow.notifications.put(NotificationLogEntry(
            destination="919876543210", message="hi", context="Test", status="sent",
        ))

    async with seeded_store.transaction() as uow:
        rows = await uow.predictions.for_dates(today, today + timedelta(days=1))
    assert [(p.for_date, p.predicted_units, p.confidence) for p in rows] == [
        (today, 40, 0.8),
        (today + timedelta(days=1), 55, 0.8),
    ]


@pytest.mark.asyncio
async def test_timestamps_load_as_aware_utc(seeded_store):
    ist = timezone(timedelta(hours=5, minutes=30))
    async with seeded_store.transaction() as uow:
        sale = await uow.sales.put(_sale(created_at=datetime(2024, 5, 1, 17, 30, tzinfo=ist)))
        sale_id = sale.id

    async with seeded_store.transaction() as uow:
        stored = await uow.sales.get(sale_id)
        mango = await uow.inventory.get("mango")

    assert stored.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert stored.created_at.tzinfo is not None
    assert mango.updated_at.tzinfo is not None
