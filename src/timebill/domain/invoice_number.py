"""Invoice number generation."""

from datetime import date
from typing import Iterable, Optional

from timebill.config import INVOICE_NUMBER_PREFIX, INVOICE_SEQUENCE_WIDTH
from timebill.domain.entities import Invoice


def format_invoice_number(year: int, sequence: int) -> str:
    """Format an invoice number, e.g. INV-2024-0007."""
    return f"{INVOICE_NUMBER_PREFIX}-{year}-{sequence:0{INVOICE_SEQUENCE_WIDTH}d}"


def parse_invoice_sequence(invoice_number: str, year: int) -> Optional[int]:
    """Return the sequence part of an invoice number issued in year, else None."""
    prefix = f"{INVOICE_NUMBER_PREFIX}-{year}-"
    if not invoice_number.startswith(prefix):
        return None
    try:
        return int(invoice_number[len(prefix):])
    except ValueError:
        return None


def next_invoice_number(invoices: Iterable[Invoice], today: Optional[date] = None) -> str:
    """Next sequential invoice number for the current year.

    Numbering restarts at 1 each year. The sequence is derived from the
    invoices passed in, not from a persisted counter, so two sessions creating
    invoices at the same moment can produce the same number.

    Args:
        invoices: Existing invoices
        today: Reference date (defaults to today)

    Returns:
        Invoice number such as "INV-2024-0003"
    """
    year = (today or date.today()).year
    sequences = [
        seq
        for seq in (parse_invoice_sequence(inv.invoice_number, year) for inv in invoices)
        if seq is not None
    ]
    return format_invoice_number(year, max(sequences, default=0) + 1)
