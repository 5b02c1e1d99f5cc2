"""
Juice Bar POS — Catalog models

[CONFIG DATA] products, inventory_items, recipes: created by the seed,
mutated by user edits and by the sale/pricing engines, never deleted in
normal operation (recipes may be removed by an edit).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from juicebar_pos.core.quantities import utcnow
from juicebar_pos.db.database import Base, UTCDateTime


class Product(Base):
    """
    version_id is the optimistic locking column, incremented on every price recalculation.
    """
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    markup: Mapped[float] = mapped_column(Float, nullable=False, default=0.3)
    last_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} price={self.price}>"


class InventoryItem(Base):
    """Raw ingredient stock. qty never goes below zero."""
    __tablename__ = "inventory_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="pcs")
    qty: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    reorder_level: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    cost_per_unit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False
    )

    @property
    def is_low_stock(self) -> bool:
        return self.qty <= self.reorder_level

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} qty={self.qty}>"


@dataclass(frozen=True)
class Ingredient:
    inventory_item_id: str
    qty_per_unit: float


class Recipe(Base):
    """
    One recipe per product, keyed by product_id.
    Ingredient references are not foreign keys: a recipe may name an
    inventory item that no longer exists.
    """
    __tablename__ = "recipes"

    product_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    ingredients: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False
    )

    @classmethod
    def build(cls, product_id: str, ingredients: list[Ingredient]) -> "Recipe":
        return cls(
            product_id=product_id,
            ingredients=[
                {"inventory_item_id": i.inventory_item_id, "qty_per_unit": i.qty_per_unit}
                for i in ingredients
            ],
        )

    @property
    def lines(self) -> tuple[Ingredient, ...]:
        return tuple(
            Ingredient(inventory_item_id=raw["inventory_item_id"], qty_per_unit=raw["qty_per_unit"])
            for raw in self.ingredients or ()
        )

    def __repr__(self) -> str:
        return f"<Recipe product_id={self.product_id} ingredients={len(self.ingredients or ())}>"
