"""
etl/dates.py – Trailing date window.

The daily-rates endpoint is queried once per calendar day, weekends and
holidays included (the CBR answers those with the last published rates).
Dates travel over the wire as zero-padded DD/MM/YYYY.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from config import WINDOW_DAYS

WIRE_DATE_FORMAT = "%d/%m/%Y"

# Date attribute of the daily document root, e.g. <ValCurs Date="17.10.2026" ...>
_DOCUMENT_DATE = re.compile(r"^\s*(\d{2})[./-](\d{2})[./-](\d{4})\s*$")


@dataclass(frozen=True)
class WindowEntry:
    day: date
    wire: str


def format_wire_date(day: date) -> str:
    return day.strftime(WIRE_DATE_FORMAT)


def trailing_window(reference: date | datetime, size: int = WINDOW_DAYS) -> list[WindowEntry]:
    """
    Build the window ending at ``reference``.

    Entry 0 is the reference day itself, every following entry is one
    calendar day earlier. The window is computed once per run, so a run
    that crosses midnight keeps the dates it started with.
    """
    if size <= 0:
        raise ValueError("window size must be positive")

    if isinstance(reference, datetime):
        reference = reference.date()

    return [
        WindowEntry(day=day, wire=format_wire_date(day))
        for day in (reference - timedelta(days=offset) for offset in range(size))
    ]


def normalise_document_date(text: str) -> str:
    """Rewrite DD.MM.YYYY (or DD-MM-YYYY) to DD/MM/YYYY; anything else is returned as is."""
    match = _DOCUMENT_DATE.match(text)
    if not match:
        return text
    day, month, year = match.groups()
    return f"{day}/{month}/{year}"
