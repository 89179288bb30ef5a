"""Core canonical data models - system-neutral statement models.

These models represent orders, ledger invoices and customers in a
standardized shape that is independent of the orders system and the
ledger system they were fetched from.

Field-name mapping from raw payloads is handled in /connectors/.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Union

from pydantic import BaseModel, Field, ConfigDict
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

from reconciliation.money import try_parse_money, parse_timestamp


# =============================================================================
# Annotated Value Types
# =============================================================================

# Unparsable money and dates collapse to None; absence stays distinguishable
# from a genuine zero.
MoneyValue = Annotated[Optional[Decimal], BeforeValidator(try_parse_money)]
TimestampValue = Annotated[Optional[Union[datetime, date]], BeforeValidator(parse_timestamp)]


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all canonical data structures."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# =============================================================================
# Enums
# =============================================================================

class PaymentStatus(str, Enum):
    """Payment state of an order as seen by the orders system."""
    FREE = "free"
    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"
    OVERPAID = "overpaid"


class LedgerStatus(str, Enum):
    """Payment state of the matching invoice in the ledger system."""
    NOT_EXPORTED = "not_exported"
    FREE = "free"
    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"
    OVERPAID = "overpaid"
    UNKNOWN = "unknown"


class MismatchField(str, Enum):
    """Figure on which the two systems disagree."""
    TOTAL = "total"
    PAID_AMOUNT = "paidAmount"
    OUTSTANDING_AMOUNT = "outstandingAmount"


# =============================================================================
# Input Models
# =============================================================================

class PaymentEntry(CanonicalBase):
    """A single payment recorded against an order."""
    amount: MoneyValue = None


class OrderRecord(CanonicalBase):
    """An order from the orders system - the source of truth for what is owed."""
    order_id: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    order_status: Optional[str] = None
    grand_total: MoneyValue = None
    date_payment_due: TimestampValue = None
    date_placed: TimestampValue = None
    payments: List[PaymentEntry] = Field(default_factory=list)


class LedgerInvoiceRecord(CanonicalBase):
    """Ledger-system invoice used only to cross-check an order.

    A field left as None was not reported by the ledger and is skipped
    during comparison.
    """
    total: MoneyValue = None
    amount_paid: MoneyValue = None
    amount_due: MoneyValue = None
    invoice_number: Optional[str] = None
    reference: Optional[str] = None


class BillingAddress(CanonicalBase):
    """Billing name parts of a customer."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None


class CustomerRecord(CanonicalBase):
    """A customer from the customer listing."""
    username: Optional[str] = None
    email: Optional[str] = None
    billing_address: Optional[BillingAddress] = None
    account_balance: MoneyValue = None


# =============================================================================
# Reconciliation Models
# =============================================================================

class MismatchInfo(CanonicalBase):
    """Disagreement on one figure between the orders and ledger systems.

    Attributes:
        field: Which figure disagrees
        order_system_value: Value derived from the orders system
        ledger_system_value: Value reported by the ledger system
        delta: order_system_value - ledger_system_value
    """
    field: MismatchField
    order_system_value: Decimal
    ledger_system_value: Decimal
    delta: Decimal


class ReconciledOrder(CanonicalBase):
    """Canonical per-order balance after reconciliation.

    Invariants:
        paid_amount == sum of payment amounts
        outstanding_amount == grand_total - paid_amount (negative on overpayment)
        is_past_due implies outstanding_amount > 0
    """
    order_id: str
    username: Optional[str] = None
    email: Optional[str] = None
    order_status: Optional[str] = None
    date_placed: Optional[Union[datetime, date]] = None
    date_payment_due: Optional[Union[datetime, date]] = None
    grand_total: Decimal
    payments: List[PaymentEntry] = Field(default_factory=list)
    paid_amount: Decimal
    outstanding_amount: Decimal
    is_past_due: bool = False
    payment_status: PaymentStatus
    ledger_status: LedgerStatus = LedgerStatus.NOT_EXPORTED
    ledger_invoice: Optional[LedgerInvoiceRecord] = None
    mismatches: List[MismatchInfo] = Field(default_factory=list)

    @property
    def has_mismatch(self) -> bool:
        return bool(self.mismatches)

    @property
    def mismatch(self) -> Optional[MismatchInfo]:
        """First mismatch, or None when the systems agree."""
        return self.mismatches[0] if self.mismatches else None


class OrderFailure(CanonicalBase):
    """An order that could not be reconciled."""
    order_id: Optional[str] = None
    error_kind: str
    message: str


class StatementSyncResult(CanonicalBase):
    """Outcome of reconciling a batch of orders for one statement."""
    success: bool
    reconciled: List[ReconciledOrder] = Field(default_factory=list)
    failures: List[OrderFailure] = Field(default_factory=list)
    error: Optional[str] = None


# =============================================================================
# Statement Models
# =============================================================================

class StatementOptions(CanonicalBase):
    """Presentation options for a statement table."""
    date_locale: str = "en-US"
    include_currency_symbol: bool = False
    currency_symbol: str = "$"


class StatementRow(CanonicalBase):
    """Presentation-ready row of a statement table."""
    index: int
    order_id: str
    date_placed: str
    due_date: str
    order_total: str
    payments: str
    balance: str
    is_past_due: bool = False


class StatementSummary(CanonicalBase):
    """Summary figures over all reconciled orders of one customer."""
    grand_total: Decimal
    past_due_total: Decimal


class StatementTable(CanonicalBase):
    """Rows plus summary, with the summary already formatted for footers."""
    rows: List[StatementRow] = Field(default_factory=list)
    summary: StatementSummary
    grand_total_display: str
    past_due_total_display: str


# =============================================================================
# Customer Roll-up Models
# =============================================================================

class CustomerBalance(CanonicalBase):
    """Outstanding balance of one customer across its reconciled orders."""
    username: str
    total_outstanding: Decimal
    order_count: int
    has_balance: bool


class CustomerBalanceSummary(CanonicalBase):
    """Per-customer balances plus counts over the whole run."""
    balances: List[CustomerBalance] = Field(default_factory=list)
    total_orders: int = 0
    customers_with_balance: int = 0
    customers_with_zero_balance: int = 0


class StatementMembership(CanonicalBase):
    """Changes needed to bring the statement customer list up to date."""
    to_insert: List[str] = Field(default_factory=list)
    still_listed: List[str] = Field(default_factory=list)
    to_mark_inactive: List[str] = Field(default_factory=list)
