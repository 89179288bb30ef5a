"""Statement table builder.

Single source of truth for the statement table used by every renderer
(PDF statement, email body). Renderers consume the rows and summary as
produced here and must not re-sort or re-derive balances.
"""

from typing import List, Optional, Sequence

from core.models.canonical import (
    ReconciledOrder,
    StatementOptions,
    StatementRow,
    StatementSummary,
    StatementTable,
)
from reconciliation.money import EPOCH, ZERO, format_date, format_money, to_utc_datetime


def _date_placed_key(order: ReconciledOrder):
    placed = to_utc_datetime(order.date_placed)
    return placed if placed is not None else EPOCH


def sort_by_date_placed(reconciled: Sequence[ReconciledOrder]) -> List[ReconciledOrder]:
    """Oldest first; orders without a placed date sort as the epoch.

    The sort is stable, so orders placed at the same time keep input order.
    """
    return sorted(reconciled, key=_date_placed_key)


def summarize(reconciled: Sequence[ReconciledOrder]) -> StatementSummary:
    """Grand total (signed, all orders) and past-due total."""
    grand_total = ZERO
    past_due_total = ZERO
    for order in reconciled:
        grand_total += order.outstanding_amount
        if order.is_past_due:
            past_due_total += order.outstanding_amount
    return StatementSummary(grand_total=grand_total, past_due_total=past_due_total)


def build_row(index: int, order: ReconciledOrder, options: StatementOptions) -> StatementRow:
    def money(value):
        return format_money(
            value,
            include_symbol=options.include_currency_symbol,
            symbol=options.currency_symbol,
        )

    return StatementRow(
        index=index,
        order_id=order.order_id,
        date_placed=format_date(order.date_placed, options.date_locale),
        due_date=format_date(order.date_payment_due, options.date_locale),
        order_total=money(order.grand_total),
        payments=money(order.paid_amount),
        balance=money(order.outstanding_amount),
        is_past_due=order.is_past_due,
    )


def build_statement_table(
    reconciled: Sequence[ReconciledOrder],
    options: Optional[StatementOptions] = None,
) -> StatementTable:
    """Build sorted statement rows and summary totals.

    Args:
        reconciled: Reconciled orders for one customer
        options: Date locale and currency symbol options (defaults: en-US, no symbol)

    Returns:
        StatementTable with 1-based rows, exact summary figures and their
        formatted footer strings
    """
    options = options or StatementOptions()

    ordered = sort_by_date_placed(reconciled)
    rows = [build_row(i, order, options) for i, order in enumerate(ordered, start=1)]
    summary = summarize(reconciled)

    return StatementTable(
        rows=rows,
        summary=summary,
        grand_total_display=format_money(
            summary.grand_total,
            include_symbol=options.include_currency_symbol,
            symbol=options.currency_symbol,
        ),
        past_due_total_display=format_money(
            summary.past_due_total,
            include_symbol=options.include_currency_symbol,
            symbol=options.currency_symbol,
        ),
    )
