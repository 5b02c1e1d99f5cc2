"""
Juice Bar POS — Record store

One repository per entity kind, all sharing the session of a single
UnitOfWork so a sale and its inventory deductions commit or vanish together.

    async with store.transaction() as uow:
        item = await uow.inventory.get_for_update("mango")
        await uow.inventory.set_quantity(item, 19.5)
        await uow.sales.put(sale)
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Generic, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from juicebar_pos.core.errors import StorageTransactionError, ValidationError
from juicebar_pos.core.quantities import utcnow
from juicebar_pos.models.catalog import InventoryItem, Product, Recipe
from juicebar_pos.models.records import Prediction, Setting
from juicebar_pos.models.sales import NotificationLogEntry, Sale

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class Repository(Generic[ModelT]):
    """get / get_all / put (upsert) / delete over one collection."""

    model: type
    order_by: tuple = ()

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key) -> ModelT | None:
        return await self.session.get(self.model, key)

    async def get_all(self) -> list[ModelT]:
        result = await self.session.execute(select(self.model).order_by(*self.order_by))
        return list(result.scalars().all())

    async def put(self, record: ModelT) -> ModelT:
        merged = await self.session.merge(record)
        await self.session.flush()
        return merged

    async def delete(self, key) -> bool:
        record = await self.get(key)
        if record is None:
            return False
        await self.session.delete(record)
        await self.session.flush()
        return True


class AppendOnlyRepository(Repository[ModelT]):
    """Records are inserted once and never updated or removed."""

    async def put(self, record: ModelT) -> ModelT:
        key = getattr(record, "id", None)
        if key is not None and await self.get(key) is not None:
            raise ValidationError(f"{self.model.__name__} {key} already exists and is immutable.")
        self.session.add(record)
        await self.session.flush()
        return record

    async def delete(self, key) -> bool:
        raise ValidationError(f"{self.model.__name__} records are append-only.")


class ProductRepository(Repository[Product]):
    model = Product
    order_by = (Product.name,)

    async def compare_and_set_price(
        self, product_id: str, expected_version: int | None, price: float, last_cost: float
    ) -> bool:
        """
        UPDATE ... WHERE version_id = <expected_version>; False when another
        writer got there first. expected_version=None writes unconditionally.
        """
        stmt = update(Product).where(Product.id == product_id)
        if expected_version is not None:
            stmt = stmt.where(Product.version_id == expected_version)
        stmt = stmt.values(
            price=price,
            last_cost=last_cost,
            version_id=Product.version_id + 1,
            updated_at=utcnow(),
        ).execution_options(synchronize_session="fetch")
        result = await self.session.execute(stmt)
        return result.rowcount > 0


class InventoryRepository(Repository[InventoryItem]):
    model = InventoryItem
    order_by = (InventoryItem.name,)

    async def get_for_update(self, key: str) -> InventoryItem | None:
        # FOR UPDATE is a no-op on SQLite; BEGIN IMMEDIATE already holds the write lock
        result = await self.session.execute(
            select(InventoryItem).where(InventoryItem.id == key).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_many(self, keys) -> dict[str, InventoryItem]:
        keys = list(set(keys))
        if not keys:
            return {}
        result = await self.session.execute(select(InventoryItem).where(InventoryItem.id.in_(keys)))
        return {item.id: item for item in result.scalars().all()}

    async def set_quantity(self, item: InventoryItem, qty: float) -> InventoryItem:
        item.qty = qty
        await self.session.flush()
        return item

    async def low_stock(self) -> list[InventoryItem]:
        result = await self.session.execute(
            select(InventoryItem)
            .where(InventoryItem.qty <= InventoryItem.reorder_level)
            .order_by(InventoryItem.name)
        )
        return list(result.scalars().all())


class RecipeRepository(Repository[Recipe]):
    model = Recipe
    order_by = (Recipe.product_id,)


class SaleRepository(AppendOnlyRepository[Sale]):
    model = Sale
    order_by = (Sale.id,)

    async def recent(self, limit: int | None = None) -> list[Sale]:
        stmt = select(Sale).order_by(Sale.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def between(self, start: datetime, end: datetime) -> list[Sale]:
        result = await self.session.execute(
            select(Sale)
            .where(Sale.created_at >= start, Sale.created_at < end)
            .order_by(Sale.id)
        )
        return list(result.scalars().all())


class NotificationRepository(AppendOnlyRepository[NotificationLogEntry]):
    model = NotificationLogEntry
    order_by = (NotificationLogEntry.id,)

    async def recent(self, limit: int | None = None) -> list[NotificationLogEntry]:
        stmt = select(NotificationLogEntry).order_by(NotificationLogEntry.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class PredictionRepository(AppendOnlyRepository[Prediction]):
    model = Prediction
    order_by = (Prediction.for_date, Prediction.id)

    async def for_dates(self, *days) -> list[Prediction]:
        result = await self.session.execute(
            select(Prediction).where(Prediction.for_date.in_(days)).order_by(*self.order_by)
        )
        return list(result.scalars().all())


class SettingsRepository(Repository[Setting]):
    model = Setting
    order_by = (Setting.key,)

    async def get_value(self, key: str, default: Any = None) -> Any:
        setting = await self.get(key)
        return default if setting is None else setting.value

    async def set_value(self, key: str, value: Any) -> Setting:
        return await self.put(Setting(key=key, value=value))


class UnitOfWork:
    """All repositories bound to one session, hence one transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.products = ProductRepository(session)
        self.inventory = InventoryRepository(session)
        self.recipes = RecipeRepository(session)
        self.sales = SaleRepository(session)
        self.notifications = NotificationRepository(session)
        self.predictions = PredictionRepository(session)
        self.settings = SettingsRepository(session)


class RecordStore:
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[UnitOfWork]:
        """
        Commit on normal exit, roll back on any exception.
        Store failures surface as StorageTransactionError; domain errors pass through.
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield UnitOfWork(session)
        except SQLAlchemyError as exc:
            logger.exception("Record store transaction failed")
            raise StorageTransactionError(f"Transaction failed: {exc}") from exc


_store: RecordStore | None = None


def get_store() -> RecordStore:
    global _store
    if _store is None:
        from juicebar_pos.db.database import SessionLocal

        _store = RecordStore(SessionLocal)
    return _store
