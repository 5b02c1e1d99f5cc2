"""
Juice Bar POS — Business policy switches

The engine never reads these flags from settings directly; it receives a
SalesPolicy so a test (or a future change) targets a named switch.
"""
import logging
from dataclasses import dataclass

from juicebar_pos.core.config import Settings, get_settings
from juicebar_pos.core.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalesPolicy:
    allow_oversell: bool = True
    no_recipe_means_unlimited: bool = True
    strict_ingredient_references: bool = False
    allow_reprice_without_recipe: bool = False
    price_rounding_unit: int = 5
    default_markup: float = 0.3

    @classmethod
    def from_settings(cls, settings: Settings) -> "SalesPolicy":
        return cls(
            allow_oversell=settings.ALLOW_OVERSELL,
            no_recipe_means_unlimited=settings.NO_RECIPE_MEANS_UNLIMITED,
            strict_ingredient_references=settings.STRICT_INGREDIENT_REFERENCES,
            allow_reprice_without_recipe=settings.ALLOW_REPRICE_WITHOUT_RECIPE,
            price_rounding_unit=settings.PRICE_ROUNDING_UNIT,
            default_markup=settings.DEFAULT_MARKUP,
        )

    def on_missing_ingredient(self, product_id: str, inventory_item_id: str, purpose: str) -> None:
        """
        Decide what happens when a recipe names an inventory item that does not exist.

        Lenient (default): log and return, the caller skips the ingredient.
        Strict: reject the whole operation.
        """
        if self.strict_ingredient_references:
            raise ValidationError(
                f"Recipe for '{product_id}' references unknown inventory item '{inventory_item_id}'."
            )
        logger.warning(
            "Skipping unknown inventory item %s in recipe for %s during %s",
            inventory_item_id, product_id, purpose,
        )


def get_policy() -> SalesPolicy:
    return SalesPolicy.from_settings(get_settings())
