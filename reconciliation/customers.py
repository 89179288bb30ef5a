"""Customer selection and balance roll-up.

Runs upstream of per-order reconciliation: decides which customers get a
statement at all, and how their names appear on it.
"""

from typing import Iterable, List, Mapping, Optional, Sequence

from core.models.canonical import (
    BillingAddress,
    CustomerBalance,
    CustomerBalanceSummary,
    CustomerRecord,
    ReconciledOrder,
    StatementMembership,
)
from reconciliation.money import CENT, ZERO


def select_billable_customers(customers: Optional[Iterable[CustomerRecord]]) -> List[CustomerRecord]:
    """Keep customers whose account balance is strictly positive.

    A missing balance counts as zero; credit balances (negative) are excluded.
    """
    if customers is None:
        return []
    return [
        c for c in customers
        if (c.account_balance if c.account_balance is not None else ZERO) > 0
    ]


def _clean(part: Optional[str]) -> str:
    return part.strip() if part else ""


def format_display_name(billing_address: Optional[BillingAddress]) -> Optional[str]:
    """Format "First Last (Company)" from billing address parts.

    Falls back to the name alone or the company alone; None when neither
    is present. Blank parts count as absent.
    """
    if billing_address is None:
        return None

    full_name = " ".join(
        part for part in (_clean(billing_address.first_name), _clean(billing_address.last_name))
        if part
    )
    company = _clean(billing_address.company)

    if full_name and company:
        return f"{full_name} ({company})"
    if full_name:
        return full_name
    if company:
        return company
    return None


def summarize_customer_balances(
    reconciled_by_customer: Mapping[str, Sequence[ReconciledOrder]],
) -> CustomerBalanceSummary:
    """Roll reconciled orders up to one outstanding total per customer.

    Customers with no orders are kept with a zero balance. A balance within
    one cent of zero (either sign) counts as zero.
    """
    balances = []
    total_orders = 0
    with_balance = 0

    for username, orders in reconciled_by_customer.items():
        total = sum((o.outstanding_amount for o in orders), ZERO)
        has_balance = abs(total) >= CENT
        total_orders += len(orders)
        if has_balance:
            with_balance += 1
        balances.append(CustomerBalance(
            username=username,
            total_outstanding=total,
            order_count=len(orders),
            has_balance=has_balance,
        ))

    return CustomerBalanceSummary(
        balances=balances,
        total_orders=total_orders,
        customers_with_balance=with_balance,
        customers_with_zero_balance=len(balances) - with_balance,
    )


def plan_statement_membership(
    existing_usernames: Iterable[str],
    current_usernames: Iterable[str],
) -> StatementMembership:
    """Diff the stored statement list against customers currently owing.

    Returns new customers to insert, stored customers still listed, and
    stored customers to mark inactive. Each list is sorted.
    """
    existing = {u for u in existing_usernames if u}
    current = {u for u in current_usernames if u}

    return StatementMembership(
        to_insert=sorted(current - existing),
        still_listed=sorted(existing & current),
        to_mark_inactive=sorted(existing - current),
    )
