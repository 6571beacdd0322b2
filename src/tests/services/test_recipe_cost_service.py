"""
Tests for recipe cost aggregation.

Tests cover:
- Totals and cost per output unit for flat and sectioned recipes
- Section subtotals and per-line shares
- Partial results with line errors and skipped lines
- Recipes used inside other recipes, including missing and circular ones
- Logging of clean and partial aggregations
"""

import logging
from decimal import Decimal

import pytest

from recipe_costing.models import Ingredient, Recipe, Section, SubRecipeUsage, Unit, Usage
from recipe_costing.services.exceptions import (
    CircularSubRecipe,
    CurrencyMismatch,
    DensityRequired,
    IncompatibleUnits,
    IngredientNotFound,
    InvalidRecipe,
    RecipeNotFound,
    ValidationError,
)
from recipe_costing.services.recipe_cost_service import aggregate_recipe_cost
from recipe_costing.utils.decimal_utils import quantize


class TestFlatRecipe:
    """Aggregation of recipes without sections."""

    def test_pancakes_total(self, pancakes, ingredients):
        """Two lines of 0.50 and about 0.194 total about 0.694."""
        breakdown = aggregate_recipe_cost(pancakes, ingredients)
        assert quantize(breakdown.total_cost, 3) == Decimal("0.694")
        assert breakdown.line_errors == []
        assert breakdown.skipped_count == 0
        assert not breakdown.has_issues

    def test_pancakes_cost_per_output_unit(self, pancakes, ingredients):
        """Yield of 4 gives about 0.1735 per pancake."""
        breakdown = aggregate_recipe_cost(pancakes, ingredients)
        assert breakdown.cost_per_output_unit == breakdown.total_cost / Decimal("4")
        assert quantize(breakdown.cost_per_output_unit, 4) == Decimal("0.1735")
        assert breakdown.yield_unit == Unit.EACH

    def test_lines_in_order_with_shares(self, pancakes, ingredients):
        """Costed lines keep recipe order and their shares sum to one."""
        breakdown = aggregate_recipe_cost(pancakes, ingredients)
        assert [line.ingredient_name for line in breakdown.lines] == ["Flour", "Milk"]
        assert breakdown.lines[0].cost == Decimal("0.5")
        total_share = sum(line.share_of_total for line in breakdown.lines)
        assert abs(total_share - Decimal("1")) < Decimal("1e-20")

    def test_cost_per_base_unit_on_lines(self, pancakes, ingredients):
        """Each costed line carries its ingredient's cost per base unit."""
        breakdown = aggregate_recipe_cost(pancakes, ingredients)
        assert breakdown.lines[0].cost_per_base_unit == Decimal("0.002")
        assert breakdown.lines[1].cost_per_base_unit == Decimal("0.001")

    def test_currency_carried(self, pancakes, ingredients):
        """The breakdown carries the currency of its lines."""
        assert aggregate_recipe_cost(pancakes, ingredients).currency == "GBP"

    def test_does_not_mutate_inputs(self, pancakes, ingredients):
        """Aggregation leaves the recipe unchanged."""
        before = pancakes.all_usages()
        aggregate_recipe_cost(pancakes, ingredients)
        assert pancakes.all_usages() == before


class TestSectionedRecipe:
    """Aggregation of recipes with sections."""

    def test_total_and_section_totals(self, layer_cake, ingredients):
        """Section subtotals add up to the total."""
        breakdown = aggregate_recipe_cost(layer_cake, ingredients)
        assert breakdown.section_totals == {1: Decimal("1.5"), 2: Decimal("0.43")}
        assert breakdown.total_cost == Decimal("1.93")
        assert breakdown.cost_per_output_unit == Decimal("0.24125")

    def test_section_ids_on_lines(self, layer_cake, ingredients):
        """Each line records its section, in stored section order."""
        breakdown = aggregate_recipe_cost(layer_cake, ingredients)
        assert [line.section_id for line in breakdown.lines] == [1, 1, 2, 2]
        assert [line.position for line in breakdown.lines] == [0, 1, 2, 3]

    def test_flat_items_ignored_when_sections_present(self, ingredients):
        """A recipe with sections does not cost its flat item list."""
        recipe = Recipe(
            id=40,
            name="Mixed",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            items=(Usage(1, Decimal("1000"), Unit.GRAM),),
            sections=(Section(id=1, title="Only", items=(Usage(1, Decimal("100"), Unit.GRAM),)),),
        )
        assert aggregate_recipe_cost(recipe, ingredients).total_cost == Decimal("0.2")

    def test_empty_section_has_zero_subtotal(self, ingredients):
        """Sections without lines still appear in section totals."""
        recipe = Recipe(
            id=41,
            name="Sparse",
            yield_quantity=Decimal("2"),
            yield_unit=Unit.EACH,
            sections=(
                Section(id="a", title="Empty"),
                Section(id="b", title="Flour", items=(Usage(1, Decimal("50"), Unit.GRAM),)),
            ),
        )
        breakdown = aggregate_recipe_cost(recipe, ingredients)
        assert list(breakdown.section_totals) == ["a", "b"]
        assert breakdown.section_totals["a"] == Decimal("0")


class TestPartialResults:
    """Bad lines are reported, never abort the recipe."""

    def test_missing_ingredient_excluded(self, pancakes, flour):
        """A usage referencing a deleted ingredient appears once in line_errors."""
        breakdown = aggregate_recipe_cost(pancakes, {flour.id: flour})
        assert breakdown.total_cost == Decimal("0.5")
        assert len(breakdown.line_errors) == 1
        error = breakdown.line_errors[0]
        assert isinstance(error.error, IngredientNotFound)
        assert error.kind == "ingredient_not_found"
        assert error.ingredient_id == 2
        assert error.position == 1
        assert error.recipe_id == pancakes.id
        assert breakdown.has_issues

    def test_density_required_excluded(self, ingredients):
        """A line needing a missing density is a line error."""
        recipe = Recipe(
            id=50,
            name="Cup of flour",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            items=(
                Usage(1, Decimal("1"), Unit.CUP),
                Usage(4, Decimal("100"), Unit.GRAM),
            ),
        )
        breakdown = aggregate_recipe_cost(recipe, ingredients)
        assert breakdown.total_cost == Decimal("0.2")
        assert [type(e.error) for e in breakdown.line_errors] == [DensityRequired]
        assert "Flour" in breakdown.line_errors[0].message

    def test_invalid_usages_counted_not_errored(self, ingredients):
        """Zero quantities and missing references are skipped and counted."""
        recipe = Recipe(
            id=51,
            name="Sloppy",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            items=(
                Usage(1, Decimal("0"), Unit.GRAM),
                Usage(None, Decimal("10"), Unit.GRAM),
                Usage(1, Decimal("-5"), Unit.GRAM),
                Usage(1, Decimal("100"), Unit.GRAM),
            ),
        )
        breakdown = aggregate_recipe_cost(recipe, ingredients)
        assert breakdown.skipped_count == 3
        assert breakdown.line_errors == []
        assert breakdown.total_cost == Decimal("0.2")
        assert breakdown.has_issues

    def test_currency_mismatch_excluded(self, flour):
        """A line priced in another currency is excluded with CurrencyMismatch."""
        butter = Ingredient(5, "Butter", Decimal("250"), Unit.GRAM, Decimal("2.50"), currency="EUR")
        recipe = Recipe(
            id=52,
            name="Shortbread",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            items=(Usage(1, Decimal("100"), Unit.GRAM), Usage(5, Decimal("100"), Unit.GRAM)),
        )
        breakdown = aggregate_recipe_cost(recipe, {1: flour, 5: butter})
        assert breakdown.total_cost == Decimal("0.2")
        assert isinstance(breakdown.line_errors[0].error, CurrencyMismatch)
        assert breakdown.currency == "GBP"

    def test_nothing_costed(self):
        """A recipe with no costable lines totals zero and has no currency."""
        recipe = Recipe(id=53, name="Empty", yield_quantity=Decimal("1"), yield_unit=Unit.EACH)
        breakdown = aggregate_recipe_cost(recipe, {})
        assert breakdown.total_cost == Decimal("0")
        assert breakdown.currency is None
        assert breakdown.lines == []

class TestSubRecipes:
    """Recipes used as lines of other recipes."""

    def test_sub_recipe_costed_per_output_unit(self, iced_buns, ingredients, recipes):
        """200 g of a 0.00125-per-gram recipe adds 0.25 to the total."""
        breakdown = aggregate_recipe_cost(iced_buns, ingredients, recipes)
        assert len(breakdown.sub_recipe_lines) == 1
        sub_line = breakdown.sub_recipe_lines[0]
        assert sub_line.recipe_id == 40
        assert sub_line.recipe_name == "Icing Batch"
        assert sub_line.cost_per_unit == Decimal("0.00125")
        assert sub_line.cost == Decimal("0.25")
        assert sub_line.position == 1
        assert sub_line.breakdown.total_cost == Decimal("0.5")
        assert breakdown.total_cost == Decimal("0.85")
        assert breakdown.cost_per_output_unit == Decimal("0.85") / Decimal("6")
        assert not breakdown.has_issues

    def test_shares_include_sub_recipes(self, iced_buns, ingredients, recipes):
        """Ingredient and sub-recipe shares together sum to one."""
        breakdown = aggregate_recipe_cost(iced_buns, ingredients, recipes)
        total_share = sum(line.share_of_total for line in breakdown.lines) + sum(
            line.share_of_total for line in breakdown.sub_recipe_lines
        )
        assert abs(total_share - Decimal("1")) < Decimal("1e-20")

    def test_sub_recipe_quantity_converted_to_yield_unit(self, icing_batch, ingredients, recipes):
        """0.2 kg of a recipe that yields grams costs the same as 200 g."""
        recipe = Recipe(
            id=42,
            name="Glazed Tray",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            sub_recipes=(SubRecipeUsage(40, Decimal("0.2"), Unit.KILOGRAM),),
        )
        breakdown = aggregate_recipe_cost(recipe, ingredients, recipes)
        assert breakdown.total_cost == Decimal("0.25")

    def test_nested_sub_recipes(self, ingredients, recipes):
        """A recipe using a recipe that uses a recipe is costed all the way down."""
        platter = Recipe(
            id=43,
            name="Bun Platter",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            sub_recipes=(SubRecipeUsage(41, Decimal("3"), Unit.EACH),),
        )
        breakdown = aggregate_recipe_cost(platter, ingredients, {**recipes, platter.id: platter})
        assert quantize(breakdown.total_cost, 4) == Decimal("0.425")
        buns_line = breakdown.sub_recipe_lines[0]
        assert buns_line.breakdown.sub_recipe_lines[0].recipe_id == 40

    def test_missing_lookup_is_line_error(self, iced_buns, ingredients):
        """Without a recipe lookup the sub-recipe line is reported, not fatal."""
        breakdown = aggregate_recipe_cost(iced_buns, ingredients)
        assert breakdown.total_cost == Decimal("0.6")
        assert len(breakdown.line_errors) == 1
        error = breakdown.line_errors[0]
        assert isinstance(error.error, RecipeNotFound)
        assert error.sub_recipe_id == 40
        assert error.ingredient_id is None
        assert error.position == 1

    def test_circular_sub_recipes(self, ingredients):
        """A loop between two recipes is a line error in the inner recipe."""
        first = Recipe(
            id=50,
            name="First",
            yield_quantity=Decimal("100"),
            yield_unit=Unit.GRAM,
            items=(Usage(1, Decimal("100"), Unit.GRAM),),
            sub_recipes=(SubRecipeUsage(51, Decimal("10"), Unit.GRAM),),
        )
        second = Recipe(
            id=51,
            name="Second",
            yield_quantity=Decimal("100"),
            yield_unit=Unit.GRAM,
            items=(Usage(4, Decimal("100"), Unit.GRAM),),
            sub_recipes=(SubRecipeUsage(50, Decimal("10"), Unit.GRAM),),
        )
        breakdown = aggregate_recipe_cost(first, ingredients, {50: first, 51: second})

        inner = breakdown.sub_recipe_lines[0].breakdown
        assert inner.total_cost == Decimal("0.2")
        assert isinstance(inner.line_errors[0].error, CircularSubRecipe)
        assert inner.line_errors[0].error.path == (50, 51, 50)
        # 100 g flour plus 10 g of a 0.002-per-gram recipe
        assert breakdown.total_cost == Decimal("0.22")
        assert breakdown.line_errors == []
        assert breakdown.has_issues

    def test_recipe_using_itself(self, ingredients):
        """A recipe listing itself as a sub-recipe gets a line error."""
        recipe = Recipe(
            id=52,
            name="Ouroboros",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            items=(Usage(1, Decimal("100"), Unit.GRAM),),
            sub_recipes=(SubRecipeUsage(52, Decimal("1"), Unit.EACH),),
        )
        breakdown = aggregate_recipe_cost(recipe, ingredients, {52: recipe})
        assert breakdown.total_cost == Decimal("0.2")
        assert [e.kind for e in breakdown.line_errors] == ["circular_sub_recipe"]

    def test_sub_recipe_unit_outside_yield_domain(self, ingredients, recipes):
        """Counting a recipe that yields grams is an incompatible-units line error."""
        recipe = Recipe(
            id=53,
            name="Odd",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            sub_recipes=(SubRecipeUsage(40, Decimal("2"), Unit.EACH),),
        )
        breakdown = aggregate_recipe_cost(recipe, ingredients, recipes)
        assert isinstance(breakdown.line_errors[0].error, IncompatibleUnits)
        assert breakdown.total_cost == Decimal("0")

    def test_sub_recipe_without_yield(self, ingredients):
        """A used recipe with no positive yield is an invalid-recipe line error."""
        broken = Recipe(id=54, name="Broken", yield_quantity=Decimal("0"), yield_unit=Unit.GRAM)
        recipe = Recipe(
            id=55,
            name="Uses broken",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            sub_recipes=(SubRecipeUsage(54, Decimal("10"), Unit.GRAM),),
        )
        breakdown = aggregate_recipe_cost(recipe, ingredients, {54: broken})
        assert isinstance(breakdown.line_errors[0].error, InvalidRecipe)

    def test_invalid_sub_recipe_lines_skipped(self, ingredients, recipes):
        """Sub-recipe lines without a reference or quantity are counted as skipped."""
        recipe = Recipe(
            id=56,
            name="Sloppy",
            yield_quantity=Decimal("1"),
            yield_unit=Unit.EACH,
            sub_recipes=(
                SubRecipeUsage(None, Decimal("10"), Unit.GRAM),
                SubRecipeUsage(40, Decimal("0"), Unit.GRAM),
            ),
        )
        breakdown = aggregate_recipe_cost(recipe, ingredients, recipes)
        assert breakdown.skipped_count == 2
        assert breakdown.line_errors == []

    def test_sub_recipe_currency_mismatch(self, flour, recipes):
        """A sub-recipe priced in another currency is excluded."""
        euro_sugar = Ingredient(4, "Sugar", Decimal("500"), Unit.GRAM, Decimal("1.00"), currency="EUR")
        euro_milk = Ingredient(2, "Milk", Decimal("1000"), Unit.MILLILITER, Decimal("1.00"), currency="EUR")
        lookup = {1: flour, 2: euro_milk, 4: euro_sugar}
        breakdown = aggregate_recipe_cost(recipes[41], lookup, recipes)
        assert breakdown.total_cost == Decimal("0.6")
        assert breakdown.currency == "GBP"
        assert isinstance(breakdown.line_errors[0].error, CurrencyMismatch)
        assert breakdown.line_errors[0].sub_recipe_id == 40


class TestYieldValidation:
    """Yield quantity must be positive."""

    @pytest.mark.parametrize("yield_quantity", ["0", "-1"])
    def test_non_positive_yield_raises(self, yield_quantity, ingredients):
        """A non-positive yield raises ValidationError."""
        recipe = Recipe(
            id=60,
            name="Bad yield",
            yield_quantity=Decimal(yield_quantity),
            yield_unit=Unit.EACH,
        )
        with pytest.raises(ValidationError, match="yield quantity"):
            aggregate_recipe_cost(recipe, ingredients)


class TestAggregationLogging:
    """Aggregation logs its outcome."""

    def test_clean_aggregation_logs_debug(self, pancakes, ingredients, caplog):
        """A clean run logs a DEBUG success record."""
        with caplog.at_level(logging.DEBUG, logger="recipe_costing.services"):
            aggregate_recipe_cost(pancakes, ingredients)
        records = [r for r in caplog.records if r.getMessage() == "aggregate_recipe_cost: success"]
        assert len(records) == 1
        assert records[0].levelno == logging.DEBUG
        assert records[0].recipe_id == pancakes.id

    def test_partial_aggregation_logs_warning(self, pancakes, flour, caplog):
        """A run with line errors logs a WARNING with counts."""
        with caplog.at_level(logging.WARNING, logger="recipe_costing.services"):
            aggregate_recipe_cost(pancakes, {flour.id: flour})
        records = [r for r in caplog.records if r.getMessage() == "aggregate_recipe_cost: partial"]
        assert len(records) == 1
        assert records[0].levelno == logging.WARNING
        assert records[0].error_count == 1
