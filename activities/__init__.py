"""Activity definitions module."""

from activities.statement import (
    generate_customer_statement,
    GenerateStatementInput,
    GenerateStatementOutput,
)

__all__ = [
    "generate_customer_statement",
    "GenerateStatementInput",
    "GenerateStatementOutput",
]
