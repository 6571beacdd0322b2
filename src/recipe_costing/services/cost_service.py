"""
Ingredient unit cost and usage cost.

Formula:
    cost_per_base_unit = pack_price / (pack_quantity * factor_to_base(pack_unit))
    usage_cost = usage quantity in the pack domain's base unit * cost_per_base_unit

Both functions are pure and return ``(success, value, error)`` tuples. Full
Decimal precision is kept; rounding happens only when a caller asks for it
with ``round_to`` (display) and never between chained calculations.
"""

from decimal import Decimal
from typing import Optional, Tuple

from recipe_costing.models.ingredient import Ingredient
from recipe_costing.models.recipe import Usage
from recipe_costing.services.exceptions import (
    CostingError,
    DensityRequired,
    InvalidIngredient,
    InvalidUsage,
)
from recipe_costing.services.unit_converter import convert_to_domain_base
from recipe_costing.services.unit_registry import domain_of, factor_to_base
from recipe_costing.utils.decimal_utils import ZERO, quantize

CostResult = Tuple[bool, Decimal, Optional[CostingError]]


def validate_ingredient(ingredient: Ingredient) -> Optional[InvalidIngredient]:
    """
    Check that an ingredient's pack can produce a unit cost.

    Args:
        ingredient: Ingredient to check

    Returns:
        None if the pack is usable, otherwise an InvalidIngredient error
    """
    if ingredient.pack_quantity is None or ingredient.pack_quantity <= 0:
        return InvalidIngredient(
            ingredient.id, f"pack quantity must be positive (got {ingredient.pack_quantity})"
        )
    if ingredient.pack_price is None or ingredient.pack_price < 0:
        return InvalidIngredient(
            ingredient.id, f"pack price cannot be negative (got {ingredient.pack_price})"
        )
    return None


def cost_per_base_unit(ingredient: Ingredient) -> CostResult:
    """
    Calculate the cost of one base unit (g, ml or each) of an ingredient.

    Args:
        ingredient: Ingredient with pack quantity, unit and price

    Returns:
        Tuple of (success, cost_per_base_unit, error)
        - error is InvalidIngredient for a non-positive pack quantity or a
          negative pack price

    Example:
        Flour bought as 1 kg for 2.00 costs 0.002 per gram:

        >>> flour = Ingredient(1, "Flour", Decimal("1"), Unit.KILOGRAM, Decimal("2.00"))
        >>> cost_per_base_unit(flour)
        (True, Decimal('0.002'), None)
    """
    error = validate_ingredient(ingredient)
    if error is not None:
        return False, ZERO, error

    base_quantity = ingredient.pack_quantity * factor_to_base(ingredient.pack_unit)
    return True, ingredient.pack_price / base_quantity, None


def usage_base_quantity(usage: Usage, ingredient: Ingredient) -> Tuple[bool, Decimal, Optional[CostingError]]:
    """
    Express a usage in the base unit of the ingredient's pack domain.

    Crossing mass/volume uses the ingredient's density. A missing density is
    reported as DensityRequired naming the ingredient.

    Returns:
        Tuple of (success, base_quantity, error)
    """
    pack_domain = domain_of(ingredient.pack_unit)
    success, base_quantity, error = convert_to_domain_base(
        usage.quantity, usage.unit, pack_domain, ingredient.density
    )
    if isinstance(error, DensityRequired):
        error = DensityRequired(error.from_unit, error.to_unit, ingredient_name=ingredient.name)
    return success, base_quantity, error


def usage_cost(
    usage: Usage,
    ingredient: Ingredient,
    round_to: Optional[int] = None,
) -> CostResult:
    """
    Calculate the cost of one recipe line.

    Args:
        usage: Recipe line (quantity + unit)
        ingredient: Ingredient the line consumes
        round_to: Decimal places for display rounding. Leave as None when the
            result feeds further calculations.

    Returns:
        Tuple of (success, cost, error)
        - error is InvalidUsage for a negative quantity, InvalidIngredient for
          a bad pack, or the converter's error (DensityRequired,
          IncompatibleUnits) unchanged apart from naming the ingredient

    Example:
        250 g of flour bought at 2.00 per 1000 g costs 0.50.
    """
    if usage.quantity < 0:
        return False, ZERO, InvalidUsage(f"quantity cannot be negative (got {usage.quantity})")

    success, unit_cost, error = cost_per_base_unit(ingredient)
    if not success:
        return False, ZERO, error

    success, base_quantity, error = usage_base_quantity(usage, ingredient)
    if not success:
        return False, ZERO, error

    cost = base_quantity * unit_cost
    if round_to is not None:
        cost = quantize(cost, round_to)
    return True, cost, None
