"""Money and Date Utilities.

Decimal-safe currency parsing/formatting and locale-aware date handling
for statement figures. Nothing in this module raises on malformed input:
a bad historical record must render as a safe default ("0.00", "N/A")
instead of aborting a whole statement run.

Examples:
    >>> parse_money("1,500.00")
    Decimal('1500.00')
    >>> format_money("1234.5", include_symbol=True)
    '$1,234.50'
    >>> format_date("2024-01-05", "en-AU")
    '5 Jan 2024'
"""

import math
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Optional, Union


CENT = Decimal("0.01")
ZERO = Decimal("0")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Fallback formats after ISO-8601, month-first before day-first
DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y/%m/%d", "%m/%d/%Y", "%m-%d-%Y", "%d/%m/%Y")

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

MONTH_FIRST_LOCALES = {"en-us", "en-ca", "en-ph"}
DAY_FIRST_LOCALES = {"en-au", "en-gb", "en-nz", "en-ie", "en-za", "en-in"}

Timestamp = Union[datetime, date]


# =============================================================================
# Money
# =============================================================================

def try_parse_money(value) -> Optional[Decimal]:
    """Parse a currency amount, returning None when absent or unparsable.

    Accepts Decimals, ints, floats and strings such as "1500", "1,500.00",
    "$20" or "(12.50)" (accounting negative).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))
    if not isinstance(value, str):
        return None

    s = value.strip().replace("$", "").replace(",", "").replace(" ", "")
    if s.startswith("(") and s.endswith(")"):
        s = "-" + s[1:-1]
    if s == "":
        return None
    try:
        amount = Decimal(s)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def parse_money(value) -> Decimal:
    """Parse a currency amount; absent or malformed input is zero."""
    amount = try_parse_money(value)
    return amount if amount is not None else ZERO


def format_money(value, include_symbol: bool = False, symbol: str = "$") -> str:
    """Render an amount with two decimals and thousands separators.

    Negative amounts put the sign before the symbol ("-$1,234.50").
    """
    amount = parse_money(value)
    # Quantizing needs every integer digit plus two decimals in the context
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        ctx.Emax = max(ctx.Emax, amount.adjusted() + 1)
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if amount.is_zero():
        amount = amount.copy_abs()

    sign = "-" if amount < 0 else ""
    prefix = symbol if include_symbol else ""
    return f"{sign}{prefix}{amount.copy_abs():,.2f}"


# =============================================================================
# Dates
# =============================================================================

def parse_timestamp(value) -> Optional[Timestamp]:
    """Parse a date or datetime from upstream data.

    Date-only strings stay dates so due dates keep their calendar meaning.
    Returns None for anything it cannot read.
    """
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value
    if not isinstance(value, str):
        return None

    s = value.strip()
    if s == "":
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    if len(s) == 10:
        try:
            return date.fromisoformat(s)
        except ValueError:
            pass
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(s, fmt)
        except ValueError:
            continue
        return parsed if "%H" in fmt else parsed.date()
    return None


def to_utc_datetime(value: Optional[Timestamp]) -> Optional[datetime]:
    """Normalize a date or datetime to an aware UTC datetime.

    Dates become midnight UTC; naive datetimes are read as UTC.
    """
    if value is None:
        return None
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_date(value, locale: str = "en-US") -> str:
    """Render a date for a statement cell, or "N/A" when missing.

    en-US style: "Jan 5, 2024"; en-AU/en-GB style: "5 Jan 2024";
    unknown locales fall back to ISO "2024-01-05".
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return "N/A"

    day = parsed.date() if isinstance(parsed, datetime) else parsed
    month = MONTH_ABBREVIATIONS[day.month - 1]
    key = (locale or "").replace("_", "-").lower()

    if key in MONTH_FIRST_LOCALES:
        return f"{month} {day.day}, {day.year}"
    if key in DAY_FIRST_LOCALES:
        return f"{day.day} {month} {day.year}"
    return day.isoformat()


def is_past_due(due, now: Timestamp) -> bool:
    """Whether a due date lies strictly before `now`.

    The comparison follows the precision of the due value:

    - A date-only due date is compared with the calendar date of `now`
      (UTC for an aware `now`). An order due today is not yet past due.
    - A due value with a time of day is compared with the instant `now`.
      An order due at 09:00 today is past due from just after 09:00.

    Naive datetimes are read as UTC. An absent or unparsable due date is
    never past due.
    """
    due_ts = parse_timestamp(due)
    if due_ts is None:
        return False

    if not isinstance(due_ts, datetime):
        today = to_utc_datetime(now).date()
        return due_ts < today

    return to_utc_datetime(due_ts) < to_utc_datetime(now)
