"""Value objects consumed and produced by the costing engine."""

from .unit import Domain, Unit
from .ingredient import Ingredient
from .recipe import Recipe, Section, SubRecipeUsage, Usage

__all__ = [
    "Domain",
    "Unit",
    "Ingredient",
    "Recipe",
    "Section",
    "SubRecipeUsage",
    "Usage",
]
