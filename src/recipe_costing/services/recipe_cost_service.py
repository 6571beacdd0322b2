"""
Recipe cost aggregation.

Walks a recipe's costing lines (sections in stored order, or the flat item
list) and sums usage costs into a total and a cost per output unit. Recipes
used as lines of another recipe are costed after the ingredient lines as
``used recipe cost per output unit * quantity``, recursively.

Bad lines never abort the recipe:
- Usages with no ingredient reference or quantity <= 0 are skipped and counted
  in ``skipped_count`` (sub-recipe lines likewise)
- Usages whose ingredient is missing from the lookup, whose ingredient pack is
  invalid, or whose unit cannot be converted are excluded from the total and
  reported in ``line_errors``
- Sub-recipe lines whose recipe is missing, has no positive yield, uses a
  unit outside its yield domain, or leads back to a recipe already being
  costed are excluded the same way

Section metadata (method, bake temperature, bake time) plays no part here.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Hashable, List, Mapping, Optional, Tuple

from recipe_costing.models.ingredient import Ingredient
from recipe_costing.models.recipe import Recipe, SubRecipeUsage, Usage
from recipe_costing.models.unit import Unit
from recipe_costing.services.cost_service import cost_per_base_unit, usage_cost
from recipe_costing.services.exceptions import (
    CircularSubRecipe,
    CostingError,
    CurrencyMismatch,
    IngredientNotFound,
    InvalidRecipe,
    RecipeNotFound,
    ValidationError,
)
from recipe_costing.services.logging_utils import get_service_logger, log_operation
from recipe_costing.services.unit_converter import convert
from recipe_costing.utils.decimal_utils import ZERO

logger = get_service_logger(__name__)


@dataclass
class LineError:
    """A usage line that could not be costed.

    Attributes:
        position: Zero-based index of the line in costing order
        ingredient_id: Ingredient the line references (None for sub-recipe lines)
        quantity: Quantity as written on the line
        unit: Unit as written on the line
        error: The CostingError that excluded the line
        section_id: Section holding the line, None for flat recipes
        recipe_id: Recipe holding the line
        sub_recipe_id: Recipe the line uses, for sub-recipe lines
    """

    position: int
    ingredient_id: Optional[Hashable]
    quantity: Decimal
    unit: Unit
    error: CostingError
    section_id: Optional[Hashable] = None
    recipe_id: Optional[Hashable] = None
    sub_recipe_id: Optional[Hashable] = None

    @property
    def kind(self) -> str:
        return self.error.kind

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class LineCost:
    """Cost of one successfully costed usage line."""

    position: int
    ingredient_id: Hashable
    ingredient_name: str
    quantity: Decimal
    unit: Unit
    cost: Decimal
    section_id: Optional[Hashable] = None
    share_of_total: Decimal = ZERO
    cost_per_base_unit: Decimal = ZERO


@dataclass
class SubRecipeCost:
    """
    Cost of one sub-recipe line.

    Attributes:
        position: Zero-based index, counted after every ingredient line
        recipe_id: The used recipe
        recipe_name: Display name of the used recipe
        quantity: Quantity as written on the line
        unit: Unit as written on the line
        cost: cost_per_unit * quantity in the used recipe's yield unit
        cost_per_unit: The used recipe's cost per output unit
        breakdown: Full breakdown of the used recipe
        share_of_total: Fraction of the parent recipe total
    """

    position: int
    recipe_id: Hashable
    recipe_name: str
    quantity: Decimal
    unit: Unit
    cost: Decimal
    cost_per_unit: Decimal
    breakdown: "RecipeCostBreakdown"
    share_of_total: Decimal = ZERO


@dataclass
class RecipeCostBreakdown:
    """
    Result of costing a recipe.

    Attributes:
        recipe_id: Recipe that was costed
        total_cost: Sum of every costed line, full precision
        cost_per_output_unit: total_cost / yield_quantity
        yield_unit: Unit of one output unit
        currency: Currency of the costed lines (None if nothing was costed)
        lines: Costed lines in costing order
        section_totals: Section id -> subtotal, in stored section order
        line_errors: Lines excluded from the total and why
        skipped_count: Invalid lines skipped without an error entry
        sub_recipe_lines: Costed sub-recipe lines in recipe order
    """

    recipe_id: Hashable
    total_cost: Decimal
    cost_per_output_unit: Decimal
    yield_unit: Unit
    currency: Optional[str] = None
    lines: List[LineCost] = field(default_factory=list)
    section_totals: Dict[Hashable, Decimal] = field(default_factory=dict)
    line_errors: List[LineError] = field(default_factory=list)
    skipped_count: int = 0
    sub_recipe_lines: List[SubRecipeCost] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        """True if any line here or in a used recipe was skipped or excluded."""
        if self.line_errors or self.skipped_count > 0:
            return True
        return any(line.breakdown.has_issues for line in self.sub_recipe_lines)


def _line_error(position: int, usage: Usage, error: CostingError, section_id, recipe_id) -> LineError:
    return LineError(
        position=position,
        ingredient_id=usage.ingredient_id,
        quantity=usage.quantity,
        unit=usage.unit,
        error=error,
        section_id=section_id,
        recipe_id=recipe_id,
    )


def _sub_recipe_error(position: int, sub_usage: SubRecipeUsage, error: CostingError, recipe_id) -> LineError:
    return LineError(
        position=position,
        ingredient_id=None,
        quantity=sub_usage.quantity,
        unit=sub_usage.unit,
        error=error,
        recipe_id=recipe_id,
        sub_recipe_id=sub_usage.recipe_id,
    )


def _cost_sub_recipe(
    position: int,
    sub_usage: SubRecipeUsage,
    ingredients: Mapping[Hashable, Ingredient],
    recipes: Mapping[Hashable, Recipe],
    path: Tuple[Hashable, ...],
) -> Tuple[bool, Optional[SubRecipeCost], Optional[CostingError]]:
    """
    Cost one sub-recipe line.

    Returns:
        Tuple of (success, SubRecipeCost, error)
    """
    if sub_usage.recipe_id in path:
        return False, None, CircularSubRecipe(path + (sub_usage.recipe_id,))

    used = recipes.get(sub_usage.recipe_id)
    if used is None:
        return False, None, RecipeNotFound(sub_usage.recipe_id)

    if used.yield_quantity is None or used.yield_quantity <= 0:
        return False, None, InvalidRecipe(
            used.id, f"yield quantity must be positive (got {used.yield_quantity})"
        )

    success, quantity_in_yield_unit, error = convert(
        sub_usage.quantity, sub_usage.unit, used.yield_unit
    )
    if not success:
        return False, None, error

    breakdown = _aggregate(used, ingredients, recipes, path + (used.id,))
    return (
        True,
        SubRecipeCost(
            position=position,
            recipe_id=used.id,
            recipe_name=used.name,
            quantity=sub_usage.quantity,
            unit=sub_usage.unit,
            cost=breakdown.cost_per_output_unit * quantity_in_yield_unit,
            cost_per_unit=breakdown.cost_per_output_unit,
            breakdown=breakdown,
        ),
        None,
    )


def aggregate_recipe_cost(
    recipe: Recipe,
    ingredients: Mapping[Hashable, Ingredient],
    recipes: Optional[Mapping[Hashable, Recipe]] = None,
) -> RecipeCostBreakdown:
    """
    Calculate the total cost and cost per output unit of a recipe.

    Args:
        recipe: Recipe to cost
        ingredients: Ingredient lookup keyed by ingredient id
        recipes: Recipe lookup keyed by recipe id, used to resolve
            sub-recipe lines. Without it every sub-recipe line is a
            RecipeNotFound line error.

    Returns:
        RecipeCostBreakdown with totals, per-line costs and line errors

    Raises:
        ValidationError: If the recipe's yield quantity is not positive

    Example:
        >>> breakdown = aggregate_recipe_cost(recipe, {flour.id: flour, milk.id: milk})
        >>> breakdown.total_cost
        Decimal('0.6941747572815533980582524272')
        >>> breakdown.line_errors
        []
    """
    if recipe.yield_quantity is None or recipe.yield_quantity <= 0:
        raise ValidationError(
            [f"Recipe {recipe.id}: yield quantity must be positive (got {recipe.yield_quantity})"]
        )
    return _aggregate(recipe, ingredients, recipes if recipes is not None else {}, (recipe.id,))


def _aggregate(
    recipe: Recipe,
    ingredients: Mapping[Hashable, Ingredient],
    recipes: Mapping[Hashable, Recipe],
    path: Tuple[Hashable, ...],
) -> RecipeCostBreakdown:
    # path holds the ids of every recipe being costed, outermost first
    total_cost = ZERO
    currency: Optional[str] = None
    lines: List[LineCost] = []
    sub_recipe_lines: List[SubRecipeCost] = []
    line_errors: List[LineError] = []
    skipped_count = 0
    section_totals: Dict[Hashable, Decimal] = {
        section.id: ZERO for section in recipe.sections
    }

    costing_lines = list(recipe.iter_costing_lines())
    for position, (section, usage) in enumerate(costing_lines):
        section_id = section.id if section is not None else None

        if not usage.is_valid:
            skipped_count += 1
            continue

        ingredient = ingredients.get(usage.ingredient_id)
        if ingredient is None:
            line_errors.append(
                _line_error(
                    position, usage, IngredientNotFound(usage.ingredient_id), section_id, recipe.id
                )
            )
            continue

        success, cost, error = usage_cost(usage, ingredient)
        if not success:
            line_errors.append(_line_error(position, usage, error, section_id, recipe.id))
            continue

        if currency is None:
            currency = ingredient.currency
        elif ingredient.currency != currency:
            line_errors.append(
                _line_error(
                    position,
                    usage,
                    CurrencyMismatch(currency, ingredient.currency),
                    section_id,
                    recipe.id,
                )
            )
            continue

        # usage_cost succeeded, so the pack is valid
        _, unit_cost, _ = cost_per_base_unit(ingredient)

        total_cost += cost
        if section_id is not None:
            section_totals[section_id] += cost
        lines.append(
            LineCost(
                position=position,
                ingredient_id=ingredient.id,
                ingredient_name=ingredient.name,
                quantity=usage.quantity,
                unit=usage.unit,
                cost=cost,
                section_id=section_id,
                cost_per_base_unit=unit_cost,
            )
        )

    for index, sub_usage in enumerate(recipe.sub_recipes):
        position = len(costing_lines) + index

        if not sub_usage.is_valid:
            skipped_count += 1
            continue

        success, sub_cost, error = _cost_sub_recipe(position, sub_usage, ingredients, recipes, path)
        if not success:
            line_errors.append(_sub_recipe_error(position, sub_usage, error, recipe.id))
            continue

        sub_currency = sub_cost.breakdown.currency
        if sub_currency is not None:
            if currency is None:
                currency = sub_currency
            elif sub_currency != currency:
                line_errors.append(
                    _sub_recipe_error(
                        position, sub_usage, CurrencyMismatch(currency, sub_currency), recipe.id
                    )
                )
                continue

        total_cost += sub_cost.cost
        sub_recipe_lines.append(sub_cost)

    if total_cost > 0:
        for line in lines:
            line.share_of_total = line.cost / total_cost
        for sub_line in sub_recipe_lines:
            sub_line.share_of_total = sub_line.cost / total_cost

    breakdown = RecipeCostBreakdown(
        recipe_id=recipe.id,
        total_cost=total_cost,
        cost_per_output_unit=total_cost / recipe.yield_quantity,
        yield_unit=recipe.yield_unit,
        currency=currency,
        lines=lines,
        section_totals=section_totals,
        line_errors=line_errors,
        skipped_count=skipped_count,
        sub_recipe_lines=sub_recipe_lines,
    )

    if breakdown.has_issues:
        log_operation(
            logger,
            operation="aggregate_recipe_cost",
            outcome="partial",
            level=logging.WARNING,
            recipe_id=recipe.id,
            line_count=len(lines),
            sub_recipe_count=len(sub_recipe_lines),
            error_count=len(line_errors),
            skipped_count=skipped_count,
        )
    else:
        log_operation(
            logger,
            operation="aggregate_recipe_cost",
            outcome="success",
            level=logging.DEBUG,
            recipe_id=recipe.id,
            line_count=len(lines),
            sub_recipe_count=len(sub_recipe_lines),
        )

    return breakdown
