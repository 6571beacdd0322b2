"""Utilities package for the recipe costing engine."""

from .config import Config, get_config, reset_config
from .decimal_utils import quantize, to_decimal

__all__ = [
    "Config",
    "get_config",
    "reset_config",
    "quantize",
    "to_decimal",
]
