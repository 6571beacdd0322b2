"""Service layer logging utilities.

Provides structured logging functions for service operations, so costing,
aggregation and mixing all log with the same format and context fields.

Usage:
    from recipe_costing.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    # Log a clean aggregation
    log_operation(
        logger,
        operation="aggregate_recipe_cost",
        outcome="success",
        level=logging.DEBUG,
        recipe_id=12,
    )

    # Log a partial result
    log_operation(
        logger,
        operation="combine",
        outcome="partial",
        level=logging.WARNING,
        warning_count=2,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named under the 'recipe_costing.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'recipe_costing.services.recipe_mixer'
    """
    # Extract just the module name if full path is provided
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"recipe_costing.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message is "<operation>: <outcome>"; the context fields travel in
    ``extra`` so handlers can emit them as structured data.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "aggregate_recipe_cost", "combine")
        outcome: Outcome description (e.g., "success", "partial")
        level: Log level (default: INFO). Use DEBUG for per-call chatter.
        **context: Additional context fields. Common fields:
            - recipe_id: Recipe being costed
            - line_count: Number of costed lines
            - error_count: Number of line errors
            - skipped_count: Number of invalid lines skipped
            - warning_count: Number of unit-mismatch warnings
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
