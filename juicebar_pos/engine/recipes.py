"""
Juice Bar POS — Recipe resolver and recipe edits
"""
import logging

from juicebar_pos.core.errors import NotFoundError, ValidationError
from juicebar_pos.core.policies import SalesPolicy, get_policy
from juicebar_pos.db.store import UnitOfWork
from juicebar_pos.models.catalog import Ingredient, Recipe

logger = logging.getLogger(__name__)


async def resolve_recipe(uow: UnitOfWork, product_id: str) -> tuple[Ingredient, ...] | None:
    """Ingredient vector for one unit of the product, or None when it has no recipe."""
    recipe = await uow.recipes.get(product_id)
    if recipe is None:
        return None
    return recipe.lines


async def save_recipe(
    uow: UnitOfWork,
    product_id: str,
    ingredients: list[Ingredient],
    policy: SalesPolicy | None = None,
) -> Recipe:
    """
    Replace the product's recipe.

    qty_per_unit must be positive: availability divides by it, so a zero is
    rejected here instead of being computed later.
    """
    policy = policy or get_policy()

    if await uow.products.get(product_id) is None:
        raise NotFoundError("Product", product_id)

    for ingredient in ingredients:
        if not ingredient.inventory_item_id:
            raise ValidationError("Ingredient must reference an inventory item.")
        if ingredient.qty_per_unit is None or ingredient.qty_per_unit <= 0:
            raise ValidationError(
                f"Ingredient '{ingredient.inventory_item_id}' of '{product_id}' "
                f"needs a positive qty_per_unit, got {ingredient.qty_per_unit}."
            )

    if policy.strict_ingredient_references:
        known = await uow.inventory.get_many(i.inventory_item_id for i in ingredients)
        for ingredient in ingredients:
            if ingredient.inventory_item_id not in known:
                policy.on_missing_ingredient(product_id, ingredient.inventory_item_id, "recipe edit")

    recipe = await uow.recipes.put(Recipe.build(product_id, ingredients))
    logger.info("Recipe for %s saved with %d ingredients", product_id, len(ingredients))
    return recipe


async def delete_recipe(uow: UnitOfWork, product_id: str) -> None:
    if not await uow.recipes.delete(product_id):
        raise NotFoundError("Recipe", product_id)
    logger.info("Recipe for %s removed; product now consumes no stock", product_id)
