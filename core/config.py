"""Engine settings loaded from the environment.

Reads a .env file at the repository root (if present) and exposes the
statement settings as an explicit object. Components receive these values
as parameters; nothing in the engine reads the environment itself.

Environment variables:
- STATEMENT_MISMATCH_TOLERANCE: Max |delta| between systems before flagging (default "0.01")
- STATEMENT_DATE_LOCALE: Locale for statement dates (default "en-US")
- STATEMENT_INCLUDE_CURRENCY_SYMBOL: "true" to prefix amounts with the symbol
- STATEMENT_CURRENCY_SYMBOL: Symbol to use (default "$")
- LOG_LEVEL: Logging level name (default "INFO")
- LOG_JSON: "true" for JSON log lines
"""

import logging
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv

from core.models.canonical import StatementOptions


env_path = Path(__file__).resolve().parents[1] / ".env"
if env_path.exists():
    load_dotenv(env_path)


DEFAULT_TOLERANCE = Decimal("0.01")

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EngineSettings:
    """Settings shared by the reconciler, the aggregator and logging."""
    mismatch_tolerance: Decimal = DEFAULT_TOLERANCE
    date_locale: str = "en-US"
    include_currency_symbol: bool = False
    currency_symbol: str = "$"
    log_level: int = logging.INFO
    log_json: bool = False

    def statement_options(self) -> StatementOptions:
        return StatementOptions(
            date_locale=self.date_locale,
            include_currency_symbol=self.include_currency_symbol,
            currency_symbol=self.currency_symbol,
        )


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def parse_tolerance(raw, name: str = "mismatch tolerance") -> Decimal:
    """Parse a mismatch tolerance.

    Raises:
        ValueError: If `raw` is not a finite, non-negative decimal number
    """
    try:
        tolerance = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ValueError(f"{name} must be a decimal number, got {raw!r}")
    if not tolerance.is_finite() or tolerance < 0:
        raise ValueError(f"{name} must be finite and non-negative, got {raw!r}")
    return tolerance


def load_settings() -> EngineSettings:
    """Build settings from environment variables.

    Raises:
        ValueError: If STATEMENT_MISMATCH_TOLERANCE is not a non-negative number
    """
    tolerance = parse_tolerance(
        os.getenv("STATEMENT_MISMATCH_TOLERANCE", str(DEFAULT_TOLERANCE)),
        name="STATEMENT_MISMATCH_TOLERANCE",
    )

    level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    return EngineSettings(
        mismatch_tolerance=tolerance,
        date_locale=os.getenv("STATEMENT_DATE_LOCALE", "en-US"),
        include_currency_symbol=_env_bool("STATEMENT_INCLUDE_CURRENCY_SYMBOL", False),
        currency_symbol=os.getenv("STATEMENT_CURRENCY_SYMBOL", "$"),
        log_level=log_level,
        log_json=_env_bool("LOG_JSON", False),
    )
