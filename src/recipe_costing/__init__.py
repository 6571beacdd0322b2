"""Recipe Costing - unit conversion and cost calculation for recipes.

Turns ingredient pack prices and recipe usages into per-line costs, recipe
totals and cost per output unit, and combines recipes or their sections into
one merged ingredient list.
"""

from recipe_costing.utils.constants import APP_VERSION

__version__ = APP_VERSION
