"""
Ingredient value object.

An Ingredient is owned by the external ingredient catalog. The costing engine
receives it per call and only reads it. Pricing comes from the purchase pack:
``pack_price`` buys ``pack_quantity`` of ``pack_unit``.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Hashable, Optional

from .unit import Unit


@dataclass(frozen=True)
class Ingredient:
    """
    Purchasable ingredient with its pack pricing.

    Attributes:
        id: Catalog identity (any hashable key)
        name: Display name
        pack_quantity: Quantity in one purchase pack (expected > 0)
        pack_unit: Unit of ``pack_quantity``
        pack_price: Price of one pack (expected >= 0)
        density: Grams per milliliter, only needed to cross mass/volume
        currency: ISO currency code carried through for display only

    Values are not validated here; ``ingestion_service`` validates records
    coming from the catalog and the cost resolver reports bad packs as
    InvalidIngredient instead of dividing by zero.
    """

    id: Hashable
    name: str
    pack_quantity: Decimal
    pack_unit: Unit
    pack_price: Decimal
    density: Optional[Decimal] = None
    currency: str = "GBP"
