"""
Juice Bar POS — Recipe routes
"""
from fastapi import APIRouter, Depends, status

from juicebar_pos.core.errors import NotFoundError
from juicebar_pos.core.policies import SalesPolicy, get_policy
from juicebar_pos.db.store import RecordStore, get_store
from juicebar_pos.engine.recipes import delete_recipe, save_recipe
from juicebar_pos.models.catalog import Ingredient
from juicebar_pos.schemas.catalog import RecipeResponse, RecipeUpdateRequest

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.get("", response_model=list[RecipeResponse])
async def list_recipes(store: RecordStore = Depends(get_store)):
    async with store.transaction() as uow:
        recipes = await uow.recipes.get_all()
    return [RecipeResponse.model_validate(r) for r in recipes]


@router.get("/{product_id}", response_model=RecipeResponse)
async def get_recipe(product_id: str, store: RecordStore = Depends(get_store)):
    async with store.transaction() as uow:
        recipe = await uow.recipes.get(product_id)
    if recipe is None:
        raise NotFoundError("Recipe", product_id)
    return RecipeResponse.model_validate(recipe)


@router.put("/{product_id}", response_model=RecipeResponse)
async def put_recipe(
    product_id: str,
    payload: RecipeUpdateRequest,
    store: RecordStore = Depends(get_store),
    policy: SalesPolicy = Depends(get_policy),
):
    """Replace the product's ingredient list. Every qty_per_unit must be positive."""
    ingredients = [
        Ingredient(inventory_item_id=i.inventory_item_id, qty_per_unit=i.qty_per_unit)
        for i in payload.ingredients
    ]
    async with store.transaction() as uow:
        recipe = await save_recipe(uow, product_id, ingredients, policy)
    return RecipeResponse.model_validate(recipe)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_recipe(product_id: str, store: RecordStore = Depends(get_store)):
    async with store.transaction() as uow:
        await delete_recipe(uow, product_id)
