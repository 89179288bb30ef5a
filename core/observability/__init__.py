"""
Observability Module for the Statement Pipeline

Provides structured logging with correlation IDs so a statement run can be
traced from the workflow down to individual order reconciliations.
"""

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    get_correlation_context,
    with_correlation,
    StructuredFormatter,
    HumanReadableFormatter,
)

__all__ = [
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "get_correlation_context",
    "with_correlation",
    "StructuredFormatter",
    "HumanReadableFormatter",
]
