"""
Juice Bar POS — Dashboard summary

Today's gross sales, low-stock items, the best seller, recent sales and the
forecast records for today and tomorrow. "Today" is the shop's calendar day.
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from juicebar_pos.core.config import get_settings
from juicebar_pos.core.quantities import as_decimal, to_float, utcnow
from juicebar_pos.db.store import UnitOfWork
from juicebar_pos.models.catalog import InventoryItem
from juicebar_pos.models.records import Prediction
from juicebar_pos.models.sales import Sale

settings = get_settings()

RECENT_SALES_LIMIT = 8


@dataclass
class TopProduct:
    product_name: str
    units: int


@dataclass
class DashboardSummary:
    day: str
    today_total: float
    today_sales_count: int
    low_stock: list[InventoryItem] = field(default_factory=list)
    top_product: TopProduct | None = None
    recent_sales: list[Sale] = field(default_factory=list)
    predictions: list[Prediction] = field(default_factory=list)


def shop_day_bounds(now: datetime, tz_name: str | None = None) -> tuple[datetime, datetime]:
    """UTC start/end of the shop-local calendar day containing `now`."""
    tz = ZoneInfo(tz_name or settings.SHOP_TIMEZONE)
    local_day = now.astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def top_product(sales: list[Sale]) -> TopProduct | None:
    units: Counter = Counter()
    for sale in sales:
        for line in sale.lines:
            units[line.product_name] += line.qty
    if not units:
        return None
    name, qty = units.most_common(1)[0]
    return TopProduct(product_name=name, units=qty)


async def dashboard_summary(uow: UnitOfWork, now: datetime | None = None) -> DashboardSummary:
    now = now or utcnow()
    start, end = shop_day_bounds(now)
    todays_sales = await uow.sales.between(start, end)

    local_today = now.astimezone(ZoneInfo(settings.SHOP_TIMEZONE)).date()
    total = sum((as_decimal(s.total) for s in todays_sales), as_decimal(0))

    return DashboardSummary(
        day=local_today.isoformat(),
        today_total=to_float(total),
        today_sales_count=len(todays_sales),
        low_stock=await uow.inventory.low_stock(),
        top_product=top_product(todays_sales),
        recent_sales=await uow.sales.recent(RECENT_SALES_LIMIT),
        predictions=await uow.predictions.for_dates(local_today, local_today + timedelta(days=1)),
    )
