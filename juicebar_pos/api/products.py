"""
Juice Bar POS — Product routes
"""
import logging
from fastapi import APIRouter, Depends

from juicebar_pos.core.errors import NotFoundError
from juicebar_pos.core.policies import SalesPolicy, get_policy
from juicebar_pos.core.quantities import to_float
from juicebar_pos.db.store import RecordStore, get_store
from juicebar_pos.engine.availability import availability_for, catalog_availability
from juicebar_pos.engine.catalog import upsert_product
from juicebar_pos.engine.pricing import PricingEngine, estimate_cost
from juicebar_pos.api.deps import get_pricing_engine
from juicebar_pos.schemas.catalog import (
    CostEstimateResponse,
    PriceQuoteResponse,
    ProductResponse,
    ProductUpdateRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[ProductResponse])
async def list_products(store: RecordStore = Depends(get_store), policy: SalesPolicy = Depends(get_policy)):
    """All products with how many units current stock can still make."""
    async with store.transaction() as uow:
        products = await uow.products.get_all()
        availability = await catalog_availability(uow, policy)
    return [ProductResponse.build(p, availability[p.id]) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    store: RecordStore = Depends(get_store),
    policy: SalesPolicy = Depends(get_policy),
):
    async with store.transaction() as uow:
        product = await uow.products.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        availability = await availability_for(uow, product_id, policy)
    return ProductResponse.build(product, availability)


@router.put("/{product_id}", response_model=ProductResponse)
async def put_product(
    product_id: str,
    payload: ProductUpdateRequest,
    store: RecordStore = Depends(get_store),
    policy: SalesPolicy = Depends(get_policy),
):
    """Create or edit a product. Creating requires a name."""
    async with store.transaction() as uow:
        product = await upsert_product(uow, product_id, payload.model_dump(exclude_unset=True), policy)
        availability = await availability_for(uow, product_id, policy)
    return ProductResponse.build(product, availability)


@router.post("/{product_id}/recalc-price", response_model=PriceQuoteResponse)
async def recalc_price(product_id: str, pricing: PricingEngine = Depends(get_pricing_engine)):
    """Derive the price from current ingredient costs and the product's markup."""
    quote = await pricing.recalc_price(product_id)
    return PriceQuoteResponse(
        product_id=quote.product_id,
        new_price=quote.new_price,
        cost=quote.cost,
        previous_price=quote.previous_price,
    )


@router.get("/{product_id}/cost", response_model=CostEstimateResponse)
async def get_cost(
    product_id: str,
    store: RecordStore = Depends(get_store),
    policy: SalesPolicy = Depends(get_policy),
):
    """Ingredient cost of one unit at today's inventory costs."""
    async with store.transaction() as uow:
        cost = await estimate_cost(uow, product_id, policy)
        product = await uow.products.get(product_id)
    return CostEstimateResponse(product_id=product_id, cost=to_float(cost), current_price=product.price)
