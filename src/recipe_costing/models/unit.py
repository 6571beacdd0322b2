"""
Measurement units and domains.

Every quantity in the costing engine is tagged with a Unit, and every Unit
belongs to exactly one Domain:

- Domain.MASS: grams are the base unit
- Domain.VOLUME: milliliters are the base unit
- Domain.COUNT: "each" is the base unit

The factor table lives in ``recipe_costing.services.unit_registry``.
"""

from enum import Enum


class Domain(str, Enum):
    """
    Measurement domain of a unit.

    Units within a domain convert through fixed factors. Crossing between
    MASS and VOLUME needs an ingredient density; COUNT never converts to
    either of them.
    """

    MASS = "mass"
    VOLUME = "volume"
    COUNT = "count"


class Unit(str, Enum):
    """
    Closed set of units accepted by the costing engine.

    Values are the canonical tokens stored by the recipe catalog.
    """

    # Mass
    GRAM = "g"
    KILOGRAM = "kg"
    MILLIGRAM = "mg"
    POUND = "lb"
    OUNCE = "oz"
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"

    # Volume
    MILLILITER = "ml"
    LITER = "l"
    TEASPOON = "tsp"
    TABLESPOON = "tbsp"
    CUP = "cup"
    FLUID_OUNCE = "floz"
    PINT = "pint"
    QUART = "quart"
    GALLON = "gallon"
    PINCH = "pinch"
    DASH = "dash"

    # Count
    EACH = "each"
    SLICE = "slice"
    DOZEN = "dozen"

    def __str__(self) -> str:
        return self.value
