"""
Configuration management for the recipe costing engine.

This module handles:
- Default currency for records that carry none
- Display precision for costs and quantities
- Whether ingestion may fill missing densities from the reference table

Every setting can be overridden through a RECIPE_COSTING_* environment
variable. Invalid values fall back to the default with a logged warning.
"""

import logging
import os
from typing import Optional

from .constants import (
    CURRENCY_DECIMAL_PLACES,
    DEFAULT_CURRENCY,
    QUANTITY_DECIMAL_PLACES,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "RECIPE_COSTING_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _read_env_int(name: str, default: int, minimum: int = 0) -> int:
    """Read a non-negative integer setting, falling back to default on bad input."""
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {ENV_PREFIX}{name}={raw!r}; using default {default}")
        return default
    if value < minimum:
        logger.warning(f"{ENV_PREFIX}{name}={value} is below {minimum}; using default {default}")
        return default
    return value


def _read_env_bool(name: str, default: bool) -> bool:
    """Read a boolean setting, falling back to default on bad input."""
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    logger.warning(f"Invalid {ENV_PREFIX}{name}={raw!r}; using default {default}")
    return default


class Config:
    """
    Application configuration.

    Settings are read once, when the instance is created.
    """

    def __init__(self):
        """Initialize configuration from the environment."""
        currency = os.environ.get(ENV_PREFIX + "CURRENCY", "").strip().upper()
        if currency and (len(currency) != 3 or not currency.isalpha()):
            logger.warning(
                f"Invalid {ENV_PREFIX}CURRENCY={currency!r}; using default {DEFAULT_CURRENCY}"
            )
            currency = ""
        self._default_currency = currency or DEFAULT_CURRENCY

        self._currency_decimal_places = _read_env_int(
            "CURRENCY_PLACES", CURRENCY_DECIMAL_PLACES
        )
        self._quantity_decimal_places = _read_env_int(
            "QUANTITY_PLACES", QUANTITY_DECIMAL_PLACES
        )
        self._use_default_densities = _read_env_bool("DEFAULT_DENSITIES", False)

    @property
    def default_currency(self) -> str:
        """ISO code used for ingredient records that carry no currency."""
        return self._default_currency

    @property
    def currency_decimal_places(self) -> int:
        """Decimal places shown for money."""
        return self._currency_decimal_places

    @property
    def quantity_decimal_places(self) -> int:
        """Decimal places shown for quantities."""
        return self._quantity_decimal_places

    @property
    def use_default_densities(self) -> bool:
        """Whether ingestion fills missing densities from the reference table."""
        return self._use_default_densities

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(default_currency='{self._default_currency}', "
            f"use_default_densities={self._use_default_densities})"
        )


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Environment variables are read when the instance is first created; call
    reset_config() to pick up changes.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = Config()

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None
