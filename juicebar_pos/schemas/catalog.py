"""
Juice Bar POS — Catalog schemas
"""
from datetime import datetime

from pydantic import BaseModel, Field

from juicebar_pos.engine.availability import UNLIMITED


class ProductResponse(BaseModel):
    id: str
    name: str
    price: float
    markup: float
    last_cost: float | None = None
    image_url: str | None = None
    version_id: int
    available: int | None = None   # None when unlimited
    unlimited: bool = False

    model_config = {"from_attributes": True}

    @classmethod
    def build(cls, product, availability=None) -> "ProductResponse":
        data = cls.model_validate(product).model_dump(exclude={"available", "unlimited"})
        if availability is UNLIMITED:
            return cls(**data, available=None, unlimited=True)
        return cls(**data, available=availability, unlimited=False)


class ProductUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    price: float | None = Field(None, ge=0)
    markup: float | None = Field(None, ge=0)
    image_url: str | None = Field(None, max_length=1024)


class InventoryItemResponse(BaseModel):
    id: str
    name: str
    unit: str
    qty: float
    reorder_level: float
    cost_per_unit: float
    is_low_stock: bool
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class InventoryItemUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    unit: str | None = Field(None, min_length=1, max_length=32)
    qty: float | None = Field(None, ge=0)
    reorder_level: float | None = Field(None, ge=0)
    cost_per_unit: float | None = Field(None, ge=0)


class IngredientSchema(BaseModel):
    inventory_item_id: str = Field(..., min_length=1, max_length=64, examples=["mango"])
    qty_per_unit: float = Field(..., gt=0, examples=[0.25])


class RecipeResponse(BaseModel):
    product_id: str
    ingredients: list[IngredientSchema]

    model_config = {"from_attributes": True}


class RecipeUpdateRequest(BaseModel):
    ingredients: list[IngredientSchema] = Field(default_factory=list, max_length=50)


class PriceQuoteResponse(BaseModel):
    product_id: str
    new_price: float
    cost: float
    previous_price: float


class CostEstimateResponse(BaseModel):
    product_id: str
    cost: float
    current_price: float
