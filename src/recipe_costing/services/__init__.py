"""Services package - Costing logic for Recipe Costing.

Architecture:
- Services: Pure functions over value objects (no I/O, no persistence)
- Results: Pure calculations return (success, value, error) tuples
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Record validation at the ingestion boundary

Service Modules:
- unit_registry: Closed unit table, domains, factors and token parsing
- unit_converter: Same-domain and density-bridged conversions
- cost_service: Ingredient unit cost and usage cost
- recipe_cost_service: Recipe totals, cost per output unit, line errors
- recipe_mixer: Combining recipes and sections into one list
- ingestion_service: Catalog and recipe record validation

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- logging_utils: Structured service logging
"""

from . import (
    cost_service,
    ingestion_service,
    recipe_cost_service,
    recipe_mixer,
    unit_converter,
    unit_registry,
)

from .exceptions import (
    ServiceError,
    ConfigurationError,
    ValidationError,
    SectionNotFound,
    CostingError,
    ConversionError,
    DensityRequired,
    IncompatibleUnits,
    InvalidQuantity,
    InvalidIngredient,
    InvalidUsage,
    IngredientNotFound,
    RecipeNotFound,
    InvalidRecipe,
    CircularSubRecipe,
    CurrencyMismatch,
    unwrap,
)

from .unit_converter import convert
from .cost_service import cost_per_base_unit, usage_cost
from .recipe_cost_service import aggregate_recipe_cost, RecipeCostBreakdown
from .recipe_mixer import WHOLE_RECIPE, RecipeMixer, Selection, combine

__all__ = [
    # Modules
    "cost_service",
    "ingestion_service",
    "recipe_cost_service",
    "recipe_mixer",
    "unit_converter",
    "unit_registry",
    # Exceptions
    "ServiceError",
    "ConfigurationError",
    "ValidationError",
    "SectionNotFound",
    "CostingError",
    "ConversionError",
    "DensityRequired",
    "IncompatibleUnits",
    "InvalidQuantity",
    "InvalidIngredient",
    "InvalidUsage",
    "IngredientNotFound",
    "RecipeNotFound",
    "InvalidRecipe",
    "CircularSubRecipe",
    "CurrencyMismatch",
    "unwrap",
    # Operations
    "convert",
    "cost_per_base_unit",
    "usage_cost",
    "aggregate_recipe_cost",
    "RecipeCostBreakdown",
    "WHOLE_RECIPE",
    "RecipeMixer",
    "Selection",
    "combine",
]
