"""Pytest configuration and fixtures for recipe costing tests."""

from decimal import Decimal

import pytest

from recipe_costing.models import Ingredient, Recipe, Section, SubRecipeUsage, Unit, Usage
from recipe_costing.utils.config import reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Provide a fresh configuration singleton with no RECIPE_COSTING_* overrides."""
    for name in (
        "RECIPE_COSTING_CURRENCY",
        "RECIPE_COSTING_CURRENCY_PLACES",
        "RECIPE_COSTING_QUANTITY_PLACES",
        "RECIPE_COSTING_DEFAULT_DENSITIES",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def flour():
    """Flour: 1 kg pack for 2.00, no density."""
    return Ingredient(
        id=1,
        name="Flour",
        pack_quantity=Decimal("1"),
        pack_unit=Unit.KILOGRAM,
        pack_price=Decimal("2.00"),
    )


@pytest.fixture
def milk():
    """Milk: 1000 ml pack for 1.00, density 1.03 g/mL."""
    return Ingredient(
        id=2,
        name="Milk",
        pack_quantity=Decimal("1000"),
        pack_unit=Unit.MILLILITER,
        pack_price=Decimal("1.00"),
        density=Decimal("1.03"),
    )


@pytest.fixture
def eggs():
    """Eggs: 12 for 3.00."""
    return Ingredient(
        id=3,
        name="Eggs",
        pack_quantity=Decimal("1"),
        pack_unit=Unit.DOZEN,
        pack_price=Decimal("3.00"),
    )


@pytest.fixture
def sugar():
    """Sugar: 500 g for 1.00, no density."""
    return Ingredient(
        id=4,
        name="Sugar",
        pack_quantity=Decimal("500"),
        pack_unit=Unit.GRAM,
        pack_price=Decimal("1.00"),
    )


@pytest.fixture
def ingredients(flour, milk, eggs, sugar):
    """Ingredient lookup keyed by id."""
    return {item.id: item for item in (flour, milk, eggs, sugar)}


@pytest.fixture
def pancakes():
    """Flat recipe: 250 g flour + 200 g milk, yields 4 each."""
    return Recipe(
        id=10,
        name="Pancakes",
        yield_quantity=Decimal("4"),
        yield_unit=Unit.EACH,
        items=(
            Usage(ingredient_id=1, quantity=Decimal("250"), unit=Unit.GRAM),
            Usage(ingredient_id=2, quantity=Decimal("200"), unit=Unit.GRAM),
        ),
    )


@pytest.fixture
def layer_cake():
    """Sectioned recipe: sponge (flour, eggs) and icing (sugar, milk)."""
    return Recipe(
        id=20,
        name="Layer Cake",
        yield_quantity=Decimal("8"),
        yield_unit=Unit.SLICE,
        sections=(
            Section(
                id=1,
                title="Sponge",
                items=(
                    Usage(ingredient_id=1, quantity=Decimal("250"), unit=Unit.GRAM, note="sifted"),
                    Usage(ingredient_id=3, quantity=Decimal("4"), unit=Unit.EACH),
                ),
                method="Whisk and fold.",
                bake_temp=180,
                bake_time=25,
            ),
            Section(
                id=2,
                title="Icing",
                items=(
                    Usage(ingredient_id=4, quantity=Decimal("200"), unit=Unit.GRAM),
                    Usage(ingredient_id=2, quantity=Decimal("2"), unit=Unit.TABLESPOON),
                ),
                description="Simple glaze",
            ),
        ),
    )


@pytest.fixture
def bread():
    """Flat recipe using flour in kilograms plus milk, yields 1 each."""
    return Recipe(
        id=30,
        name="Milk Bread",
        yield_quantity=Decimal("1"),
        yield_unit=Unit.EACH,
        items=(
            Usage(ingredient_id=1, quantity=Decimal("0.5"), unit=Unit.KILOGRAM, note="strong"),
            Usage(ingredient_id=2, quantity=Decimal("300"), unit=Unit.MILLILITER),
        ),
    )


@pytest.fixture
def icing_batch():
    """Flat recipe: 200 g sugar + 100 ml milk, yields 400 g (0.00125 per gram)."""
    return Recipe(
        id=40,
        name="Icing Batch",
        yield_quantity=Decimal("400"),
        yield_unit=Unit.GRAM,
        items=(
            Usage(ingredient_id=4, quantity=Decimal("200"), unit=Unit.GRAM),
            Usage(ingredient_id=2, quantity=Decimal("100"), unit=Unit.MILLILITER),
        ),
    )


@pytest.fixture
def iced_buns():
    """300 g flour plus 200 g of Icing Batch, yields 6 each."""
    return Recipe(
        id=41,
        name="Iced Buns",
        yield_quantity=Decimal("6"),
        yield_unit=Unit.EACH,
        items=(Usage(ingredient_id=1, quantity=Decimal("300"), unit=Unit.GRAM),),
        sub_recipes=(SubRecipeUsage(recipe_id=40, quantity=Decimal("200"), unit=Unit.GRAM),),
    )


@pytest.fixture
def recipes(icing_batch, iced_buns):
    """Recipe lookup keyed by id, for resolving sub-recipes."""
    return {recipe.id: recipe for recipe in (icing_batch, iced_buns)}
