"""Source-system connectors - payload normalization.

This package maps raw payloads from the orders system and the ledger
system onto the canonical models the reconciliation engine consumes.

Key Design Principle:
- The engine never looks up alternate field names; all fallbacks live here
- All parsers return canonical types (OrderRecord, LedgerInvoiceRecord, CustomerRecord)
"""

from connectors.orders_system import (
    RawOrder,
    RawOrderPayment,
    RawCustomer,
    RawBillingAddress,
    parse_orders_response,
    parse_customers_response,
)
from connectors.ledger_system import (
    RawLedgerInvoice,
    RawLedgerLookup,
    LedgerMatchError,
    parse_ledger_lookup,
)

__all__ = [
    # Orders system
    "RawOrder",
    "RawOrderPayment",
    "RawCustomer",
    "RawBillingAddress",
    "parse_orders_response",
    "parse_customers_response",
    # Ledger system
    "RawLedgerInvoice",
    "RawLedgerLookup",
    "LedgerMatchError",
    "parse_ledger_lookup",
]
