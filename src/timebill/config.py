"""Application defaults and environment overrides.

Every default that used to be scattered across call sites lives here so the
timer, the entry form and the invoice composer agree on it.
"""

import os
from decimal import Decimal
from pathlib import Path

from timebill.utils.amount_parser import parse_amount, round_amount

DB_PATH_ENV_VAR = "TIMEBILL_DB_PATH"
DEFAULT_RATE_ENV_VAR = "TIMEBILL_DEFAULT_RATE"
DEFAULT_DB_DIR = Path.home() / ".timebill"
DEFAULT_DB_FILENAME = "timebill.db"

# Time tracking
DEFAULT_HOURLY_RATE = Decimal("85.00")
DEFAULT_CATEGORY_ID = "dev"
TIMER_POLL_INTERVAL_SECONDS = 1.0

# Invoicing
INVOICE_NUMBER_PREFIX = "INV"
INVOICE_SEQUENCE_WIDTH = 4
DEFAULT_PAYMENT_TERMS = "Net 15"
DEFAULT_INVOICE_NOTES = "Thank you for your business!"
PAYMENT_TERMS_DAYS = {
    "Due on Receipt": 0,
    "Net 7": 7,
    "Net 15": 15,
    "Net 30": 30,
}


def default_hourly_rate() -> Decimal:
    """Hourly rate for entries created without one.

    TIMEBILL_DEFAULT_RATE overrides DEFAULT_HOURLY_RATE.

    Raises:
        ValueError: If the override is not a non-negative amount
    """
    raw = os.environ.get(DEFAULT_RATE_ENV_VAR)
    if raw is None:
        return DEFAULT_HOURLY_RATE
    try:
        return round_amount(parse_amount(raw))
    except ValueError as e:
        raise ValueError(f"Invalid {DEFAULT_RATE_ENV_VAR} '{raw}': {e}") from e
