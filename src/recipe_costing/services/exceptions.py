"""Service layer exception classes for the recipe costing engine.

Exception Hierarchy:
    ServiceError (base)
    ├── ConfigurationError       raised: unit table / schema mismatch
    ├── ValidationError          raised: bad record or argument
    ├── SectionNotFound          raised: mixer asked for an unknown section
    └── CostingError             returned per line, never raised by the core
        ├── ConversionError
        │   ├── DensityRequired
        │   ├── IncompatibleUnits
        │   └── InvalidQuantity
        ├── InvalidIngredient
        ├── InvalidUsage
        ├── IngredientNotFound
        ├── RecipeNotFound
        ├── InvalidRecipe
        ├── CircularSubRecipe
        └── CurrencyMismatch

CostingError subclasses are recoverable. Pure operations hand them back in a
``(success, value, error)`` tuple and the aggregator and combiner collect them
as line errors. ``unwrap`` turns such a tuple back into exception semantics.
"""

from typing import Hashable, Optional, Tuple


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class ConfigurationError(ServiceError):
    """Raised when a unit token or unit table entry is unknown.

    This means code and data disagree about the set of units. It is fatal
    and must not be swallowed.

    Example:
        >>> raise ConfigurationError("Unknown unit token: 'bushel'")
        ConfigurationError: Unknown unit token: 'bushel'
    """

    pass


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class SectionNotFound(ServiceError):
    """Raised when a recipe has no section with the requested key.

    Args:
        recipe_id: Recipe that was searched
        section_key: Section id that was not found
    """

    def __init__(self, recipe_id: Hashable, section_key: Hashable):
        self.recipe_id = recipe_id
        self.section_key = section_key
        super().__init__(f"Recipe {recipe_id} has no section {section_key!r}")


class CostingError(ServiceError):
    """Base for recoverable per-line costing failures.

    Attributes:
        kind: Stable machine-readable code for the failure kind
    """

    kind = "costing_error"


class ConversionError(CostingError):
    """A quantity could not be converted between two units."""

    kind = "conversion_error"


class DensityRequired(ConversionError):
    """Raised when crossing mass and volume without a usable density.

    Example:
        >>> raise DensityRequired("g", "ml", ingredient_name="Milk")
        DensityRequired: Density required to convert g to ml for 'Milk'
    """

    kind = "density_required"

    def __init__(self, from_unit, to_unit, ingredient_name: Optional[str] = None):
        self.from_unit = from_unit
        self.to_unit = to_unit
        self.ingredient_name = ingredient_name
        message = f"Density required to convert {from_unit} to {to_unit}"
        if ingredient_name:
            message += f" for '{ingredient_name}'"
        super().__init__(message)


class IncompatibleUnits(ConversionError):
    """Raised when converting between domains that have no bridge (count vs mass/volume)."""

    kind = "incompatible_units"

    def __init__(self, from_unit, to_unit):
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(f"Cannot convert {from_unit} to {to_unit}: incompatible unit types")


class InvalidQuantity(ConversionError):
    """Raised when a quantity is negative."""

    kind = "invalid_quantity"

    def __init__(self, quantity):
        self.quantity = quantity
        super().__init__(f"Quantity cannot be negative: {quantity}")


class InvalidIngredient(CostingError):
    """Raised when an ingredient's pack cannot produce a unit cost.

    Args:
        ingredient_id: The offending ingredient
        reason: What is wrong with the pack
    """

    kind = "invalid_ingredient"

    def __init__(self, ingredient_id: Hashable, reason: str):
        self.ingredient_id = ingredient_id
        self.reason = reason
        super().__init__(f"Ingredient {ingredient_id} is invalid: {reason}")


class InvalidUsage(CostingError):
    """Raised when a usage line has no ingredient or a non-positive quantity."""

    kind = "invalid_usage"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid usage: {reason}")


class IngredientNotFound(CostingError):
    """Raised when a usage references an ingredient missing from the lookup.

    Example:
        >>> raise IngredientNotFound(123)
        IngredientNotFound: Ingredient with ID 123 not found
    """

    kind = "ingredient_not_found"

    def __init__(self, ingredient_id: Hashable):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient with ID {ingredient_id} not found")


class RecipeNotFound(CostingError):
    """Raised when a sub-recipe line references a recipe missing from the lookup.

    Example:
        >>> raise RecipeNotFound(42)
        RecipeNotFound: Recipe with ID 42 not found
    """

    kind = "recipe_not_found"

    def __init__(self, recipe_id: Hashable):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class InvalidRecipe(CostingError):
    """Raised when a used recipe cannot produce a cost per output unit."""

    kind = "invalid_recipe"

    def __init__(self, recipe_id: Hashable, reason: str):
        self.recipe_id = recipe_id
        self.reason = reason
        super().__init__(f"Recipe {recipe_id} is invalid: {reason}")


class CircularSubRecipe(CostingError):
    """Raised when a recipe uses itself, directly or through other recipes.

    Args:
        path: Recipe ids from the outermost recipe to the repeated one
    """

    kind = "circular_sub_recipe"

    def __init__(self, path: Tuple[Hashable, ...]):
        self.path = tuple(path)
        chain = " -> ".join(str(recipe_id) for recipe_id in self.path)
        super().__init__(f"Recipe uses itself: {chain}")


class CurrencyMismatch(CostingError):
    """Raised when a line is priced in a different currency than the running total."""

    kind = "currency_mismatch"

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Line priced in {actual} cannot be added to a {expected} total")


def unwrap(result: Tuple[bool, object, Optional[CostingError]]):
    """
    Return the value of a ``(success, value, error)`` tuple or raise its error.

    Args:
        result: Tuple returned by convert / cost_per_base_unit / usage_cost

    Returns:
        The value on success

    Raises:
        CostingError: The error carried by a failed result
    """
    success, value, error = result
    if not success:
        raise error
    return value
