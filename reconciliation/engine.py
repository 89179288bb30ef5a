"""Reconciliation engine for order balances and ledger cross-checks.

Exposes high-level functions:
- reconcile(order, ledger_invoice, now) -> ReconciledOrder
- synchronize_statement(orders, ledger_invoices, now) -> StatementSyncResult

The orders system is the source of truth for what a customer owes. The
ledger system's figures are only compared against it; disagreements are
attached to the order as advisory mismatches and never block it.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Union

from core.config import parse_tolerance
from core.models.canonical import (
    LedgerInvoiceRecord,
    LedgerStatus,
    MismatchField,
    MismatchInfo,
    OrderFailure,
    OrderRecord,
    PaymentStatus,
    ReconciledOrder,
    StatementSyncResult,
)
from core.observability.logging import get_logger, with_correlation
from reconciliation.money import CENT, ZERO, is_past_due, try_parse_money


logger = get_logger(__name__)


# =============================================================================
# Configuration & Errors
# =============================================================================

AMOUNT_TOLERANCE = Decimal("0.01")

LedgerInvoices = Union[
    Sequence[Optional[LedgerInvoiceRecord]],
    Mapping[str, Optional[LedgerInvoiceRecord]],
]


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""
    kind = "ReconciliationError"

    def __init__(self, message: str, order_id: Optional[str] = None):
        super().__init__(message)
        self.order_id = order_id


class InvalidInputError(ReconciliationError):
    """Order lacks the identifier or grand total needed to reconcile it."""
    kind = "InvalidInput"


# =============================================================================
# Utility Functions
# =============================================================================

def amounts_match(a: Decimal, b: Decimal, tolerance: Decimal = AMOUNT_TOLERANCE) -> bool:
    """Check if two amounts match within tolerance (inclusive)."""
    return abs(a - b) <= tolerance


def sum_payments(order: OrderRecord) -> Decimal:
    """Exact sum of payment amounts; payments without an amount count as zero."""
    total = ZERO
    for payment in order.payments:
        if payment.amount is not None:
            total += payment.amount
    return total


def classify_payment_status(
    grand_total: Decimal,
    paid_amount: Decimal,
    outstanding_amount: Decimal,
) -> PaymentStatus:
    """Classify an order's payment state from the orders-system figures."""
    if grand_total == 0:
        return PaymentStatus.FREE
    if abs(outstanding_amount) < CENT:
        return PaymentStatus.PAID
    if outstanding_amount < 0:
        return PaymentStatus.OVERPAID
    if paid_amount > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def classify_ledger_status(ledger_invoice: Optional[LedgerInvoiceRecord]) -> LedgerStatus:
    """Classify the ledger invoice's payment state; unreported figures count as zero."""
    if ledger_invoice is None:
        return LedgerStatus.NOT_EXPORTED

    total = ledger_invoice.total if ledger_invoice.total is not None else ZERO
    paid = ledger_invoice.amount_paid if ledger_invoice.amount_paid is not None else ZERO
    due = ledger_invoice.amount_due if ledger_invoice.amount_due is not None else ZERO

    if total == 0 and paid == 0 and due == 0:
        return LedgerStatus.FREE
    if total == paid and due == 0:
        return LedgerStatus.PAID
    if paid == 0 and due > 0:
        return LedgerStatus.UNPAID
    if total != paid:
        return LedgerStatus.PARTIAL if due > 0 else LedgerStatus.OVERPAID
    return LedgerStatus.UNKNOWN


def find_mismatches(
    grand_total: Decimal,
    paid_amount: Decimal,
    outstanding_amount: Decimal,
    ledger_invoice: LedgerInvoiceRecord,
    tolerance: Decimal = AMOUNT_TOLERANCE,
) -> List[MismatchInfo]:
    """Compare each figure independently; one MismatchInfo per disagreeing field.

    Figures the ledger did not report are skipped.
    """
    comparisons = (
        (MismatchField.TOTAL, grand_total, ledger_invoice.total),
        (MismatchField.PAID_AMOUNT, paid_amount, ledger_invoice.amount_paid),
        (MismatchField.OUTSTANDING_AMOUNT, outstanding_amount, ledger_invoice.amount_due),
    )

    mismatches = []
    for field, order_value, ledger_value in comparisons:
        if ledger_value is None:
            continue
        if amounts_match(order_value, ledger_value, tolerance):
            continue
        mismatches.append(MismatchInfo(
            field=field,
            order_system_value=order_value,
            ledger_system_value=ledger_value,
            delta=order_value - ledger_value,
        ))
    return mismatches


def _validate_order(order: OrderRecord) -> Decimal:
    """Return the order's grand total, raising InvalidInputError if unusable."""
    if order.order_id is None or not str(order.order_id).strip():
        raise InvalidInputError("Order is missing OrderID", order_id=None)

    grand_total = try_parse_money(order.grand_total)
    if grand_total is None:
        raise InvalidInputError(
            f"Order {order.order_id} has no parseable GrandTotal",
            order_id=order.order_id,
        )
    return grand_total


# =============================================================================
# Main Reconciliation Engine
# =============================================================================

def reconcile(
    order: OrderRecord,
    ledger_invoice: Optional[LedgerInvoiceRecord],
    now: Union[datetime, date],
    tolerance: Decimal = AMOUNT_TOLERANCE,
) -> ReconciledOrder:
    """Reconcile one order against its (optional) ledger invoice.

    Args:
        order: Canonical order from the orders system
        ledger_invoice: Matching ledger invoice, or None if the ledger has none
        now: Reconciliation timestamp used for the past-due check
        tolerance: Largest |delta| between systems that still counts as agreement

    Returns:
        ReconciledOrder with balances, past-due flag and any mismatches

    Raises:
        InvalidInputError: If the order has no OrderID or no parseable GrandTotal
        ValueError: If the tolerance is not a finite, non-negative number
    """
    tolerance = parse_tolerance(tolerance)
    grand_total = _validate_order(order)

    paid_amount = sum_payments(order)
    outstanding_amount = grand_total - paid_amount
    past_due = outstanding_amount > 0 and is_past_due(order.date_payment_due, now)

    mismatches: List[MismatchInfo] = []
    if ledger_invoice is not None:
        mismatches = find_mismatches(
            grand_total, paid_amount, outstanding_amount, ledger_invoice, tolerance
        )

    with with_correlation(order_id=order.order_id):
        for mismatch in mismatches:
            logger.warning(
                f"Ledger mismatch on {mismatch.field.value}: "
                f"orders={mismatch.order_system_value} ledger={mismatch.ledger_system_value}",
                extra_fields={"field": mismatch.field.value, "delta": str(mismatch.delta)},
            )

    return ReconciledOrder(
        order_id=order.order_id,
        username=order.username,
        email=order.email,
        order_status=order.order_status,
        date_placed=order.date_placed,
        date_payment_due=order.date_payment_due,
        grand_total=grand_total,
        payments=list(order.payments),
        paid_amount=paid_amount,
        outstanding_amount=outstanding_amount,
        is_past_due=past_due,
        payment_status=classify_payment_status(grand_total, paid_amount, outstanding_amount),
        ledger_status=classify_ledger_status(ledger_invoice),
        ledger_invoice=ledger_invoice,
        mismatches=mismatches,
    )


def _align_ledger_invoices(
    orders: Sequence[OrderRecord],
    ledger_invoices: Optional[LedgerInvoices],
) -> List[Optional[LedgerInvoiceRecord]]:
    """Line ledger invoices up with orders, by order_id key or by position."""
    if ledger_invoices is None:
        return [None] * len(orders)

    if isinstance(ledger_invoices, Mapping):
        return [
            ledger_invoices.get(order.order_id) if order.order_id is not None else None
            for order in orders
        ]

    aligned = list(ledger_invoices)
    if len(aligned) > len(orders):
        raise ValueError(
            f"Received {len(aligned)} ledger invoices for {len(orders)} orders"
        )
    return aligned + [None] * (len(orders) - len(aligned))


def synchronize_statement(
    orders: Sequence[OrderRecord],
    ledger_invoices: Optional[LedgerInvoices],
    now: Union[datetime, date],
    tolerance: Decimal = AMOUNT_TOLERANCE,
    allow_empty: bool = False,
) -> StatementSyncResult:
    """Reconcile a batch of orders for one statement.

    Ledger invoices are correlated by the caller: either a sequence aligned
    with `orders` (None where the ledger has no invoice) or a mapping keyed
    by order_id. The engine never picks a matching key itself.

    Args:
        orders: Canonical orders for one customer/statement
        ledger_invoices: Aligned sequence or order_id mapping, or None
        now: Reconciliation timestamp
        tolerance: Mismatch tolerance passed to reconcile()
        allow_empty: If True, an empty order list is a successful empty result

    Returns:
        StatementSyncResult; success is False only for structural problems.
        Orders with invalid input are listed in `failures`.
    """
    if not orders and not allow_empty:
        logger.error("Statement synchronization requested with no orders")
        return StatementSyncResult(success=False, error="No orders supplied for reconciliation")

    try:
        aligned = _align_ledger_invoices(orders, ledger_invoices)
    except ValueError as e:
        logger.error(f"Cannot align ledger invoices: {e}")
        return StatementSyncResult(success=False, error=str(e))

    reconciled: List[ReconciledOrder] = []
    failures: List[OrderFailure] = []

    for order, ledger_invoice in zip(orders, aligned):
        try:
            reconciled.append(reconcile(order, ledger_invoice, now, tolerance))
        except InvalidInputError as e:
            logger.warning(f"Skipping order: {e}", extra_fields={"error_kind": e.kind})
            failures.append(OrderFailure(
                order_id=e.order_id,
                error_kind=e.kind,
                message=str(e),
            ))

    mismatched = sum(1 for r in reconciled if r.has_mismatch)
    logger.info(
        f"Reconciled {len(reconciled)}/{len(orders)} orders "
        f"({mismatched} with ledger mismatches, {len(failures)} failed)"
    )

    return StatementSyncResult(success=True, reconciled=reconciled, failures=failures)


def count_by_status(reconciled: Sequence[ReconciledOrder]) -> Dict[str, int]:
    """Count reconciled orders per payment status."""
    counts: Dict[str, int] = {}
    for order in reconciled:
        key = order.payment_status.value
        counts[key] = counts.get(key, 0) + 1
    return counts
