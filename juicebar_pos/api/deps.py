"""
Juice Bar POS — FastAPI dependencies

Engines are assembled per request from the shared store and channel, so
tests can swap either with app.dependency_overrides.
"""
from fastapi import Depends

from juicebar_pos.core.policies import SalesPolicy, get_policy
from juicebar_pos.db.store import RecordStore, get_store
from juicebar_pos.engine.channels import NotificationChannel, get_channel
from juicebar_pos.engine.events import EventBus, SaleCommitted
from juicebar_pos.engine.notifications import BillNotifier
from juicebar_pos.engine.pricing import PricingEngine
from juicebar_pos.engine.sales import SaleEngine


def get_event_bus(
    store: RecordStore = Depends(get_store),
    channel: NotificationChannel = Depends(get_channel),
) -> EventBus:
    bus = EventBus()
    bus.subscribe(SaleCommitted.event_type, BillNotifier(store, channel))
    return bus


def get_sale_engine(
    store: RecordStore = Depends(get_store),
    bus: EventBus = Depends(get_event_bus),
    policy: SalesPolicy = Depends(get_policy),
) -> SaleEngine:
    return SaleEngine(store, bus=bus, policy=policy)


def get_pricing_engine(
    store: RecordStore = Depends(get_store),
    policy: SalesPolicy = Depends(get_policy),
) -> PricingEngine:
    return PricingEngine(store, policy=policy)
