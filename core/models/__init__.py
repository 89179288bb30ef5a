"""Core data models - system-neutral canonical types.

This package contains the canonical models for orders, ledger invoices,
customers and statements, independent of the systems they come from.
"""

from core.models.canonical import (
    # Base
    CanonicalBase,
    MoneyValue,
    TimestampValue,

    # Enums
    PaymentStatus,
    LedgerStatus,
    MismatchField,

    # Inputs
    PaymentEntry,
    OrderRecord,
    LedgerInvoiceRecord,
    BillingAddress,
    CustomerRecord,

    # Reconciliation
    MismatchInfo,
    ReconciledOrder,
    OrderFailure,
    StatementSyncResult,

    # Statement
    StatementOptions,
    StatementRow,
    StatementSummary,
    StatementTable,

    # Customer roll-up
    CustomerBalance,
    CustomerBalanceSummary,
    StatementMembership,
)

__all__ = [
    # Base
    "CanonicalBase",
    "MoneyValue",
    "TimestampValue",

    # Enums
    "PaymentStatus",
    "LedgerStatus",
    "MismatchField",

    # Inputs
    "PaymentEntry",
    "OrderRecord",
    "LedgerInvoiceRecord",
    "BillingAddress",
    "CustomerRecord",

    # Reconciliation
    "MismatchInfo",
    "ReconciledOrder",
    "OrderFailure",
    "StatementSyncResult",

    # Statement
    "StatementOptions",
    "StatementRow",
    "StatementSummary",
    "StatementTable",

    # Customer roll-up
    "CustomerBalance",
    "CustomerBalanceSummary",
    "StatementMembership",
]
