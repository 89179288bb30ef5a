"""Statement activities for the customer statement pipeline.

Temporal activity that normalizes one customer's raw orders and ledger
lookups, reconciles them, and builds the statement table.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from temporalio import activity

from connectors.ledger_system import parse_ledger_lookup
from connectors.orders_system import parse_orders_response
from core.config import load_settings, parse_tolerance
from core.models.canonical import StatementOptions
from core.observability.logging import get_logger, with_correlation
from reconciliation.engine import count_by_status, synchronize_statement
from reconciliation.money import parse_timestamp
from reconciliation.statement import build_statement_table


logger = get_logger(__name__)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class GenerateStatementInput:
    """Input for generate_customer_statement activity.

    Attributes:
        customer_username: Customer the statement is for
        orders: Raw orders-system order payloads
        ledger_lookups: Raw ledger lookups ({"foundCount", "invoices"}) aligned
            with `orders` by position; None where no lookup was made
        now: ISO timestamp used for the past-due check (default: current UTC time)
        date_locale: Overrides STATEMENT_DATE_LOCALE
        include_currency_symbol: Overrides STATEMENT_INCLUDE_CURRENCY_SYMBOL
        tolerance: Overrides STATEMENT_MISMATCH_TOLERANCE (decimal string)
    """
    customer_username: str
    orders: List[Dict[str, Any]]
    ledger_lookups: List[Optional[Dict[str, Any]]] = field(default_factory=list)
    now: Optional[str] = None
    date_locale: Optional[str] = None
    include_currency_symbol: Optional[bool] = None
    tolerance: Optional[str] = None


@dataclass
class GenerateStatementOutput:
    """Output from generate_customer_statement activity.

    Money values are decimal strings so the payload stays JSON-safe.
    """
    customer_username: str
    success: bool
    error: Optional[str] = None
    statement: Optional[Dict[str, Any]] = None
    reconciled: List[Dict[str, Any]] = field(default_factory=list)
    failures: List[Dict[str, Any]] = field(default_factory=list)
    status_counts: Dict[str, int] = field(default_factory=dict)
    mismatch_count: int = 0


# =============================================================================
# Activity Definition
# =============================================================================

@activity.defn
async def generate_customer_statement(input: GenerateStatementInput) -> GenerateStatementOutput:
    """Reconcile a customer's orders and build their statement table.

    Args:
        input: GenerateStatementInput with raw orders and ledger lookups

    Returns:
        GenerateStatementOutput with the statement table and per-order results

    Raises:
        LedgerMatchError: If a ledger lookup returns several invoices and none
            matches the order id
        ValueError: If `now` or `tolerance` cannot be parsed
    """
    info = activity.info()
    settings = load_settings()

    with with_correlation(
        customer_username=input.customer_username,
        workflow_id=info.workflow_id,
        workflow_run_id=info.workflow_run_id,
        activity_name=info.activity_type,
        stage="STATEMENT",
    ):
        now = parse_timestamp(input.now) if input.now else datetime.now(timezone.utc)
        if now is None:
            raise ValueError(f"Cannot parse reconciliation timestamp {input.now!r}")

        tolerance = settings.mismatch_tolerance
        if input.tolerance:
            tolerance = parse_tolerance(input.tolerance)
        options = StatementOptions(
            date_locale=input.date_locale or settings.date_locale,
            include_currency_symbol=(
                input.include_currency_symbol
                if input.include_currency_symbol is not None
                else settings.include_currency_symbol
            ),
            currency_symbol=settings.currency_symbol,
        )

        orders = parse_orders_response(input.orders)
        ledger_invoices = []
        for i, lookup in enumerate(input.ledger_lookups):
            reference = orders[i].order_id if i < len(orders) else None
            ledger_invoices.append(parse_ledger_lookup(lookup, reference=reference))

        logger.info(
            f"Generating statement: {len(orders)} orders, "
            f"{sum(1 for inv in ledger_invoices if inv is not None)} ledger invoices"
        )

        result = synchronize_statement(orders, ledger_invoices, now, tolerance)
        if not result.success:
            logger.error(f"Statement synchronization failed: {result.error}")
            return GenerateStatementOutput(
                customer_username=input.customer_username,
                success=False,
                error=result.error,
            )

        table = build_statement_table(result.reconciled, options)

        logger.info(
            f"Statement built: {len(table.rows)} rows, "
            f"balance {table.grand_total_display}, past due {table.past_due_total_display}"
        )

        return GenerateStatementOutput(
            customer_username=input.customer_username,
            success=True,
            statement=table.model_dump(mode="json"),
            reconciled=[r.model_dump(mode="json") for r in result.reconciled],
            failures=[f.model_dump(mode="json") for f in result.failures],
            status_counts=count_by_status(result.reconciled),
            mismatch_count=sum(1 for r in result.reconciled if r.has_mismatch),
        )
