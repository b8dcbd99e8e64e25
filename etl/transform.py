"""
etl/transform.py – Transformation layer.

Turns raw CBR XML into records:

  directory  <Item ID="R01235"> ... </Item>        → CurrencyRecord
  daily      <Valute ID="R01235"> ... </Valute>    → RateObservation

Numbers in the daily documents use a decimal comma ("78,5123"); it is
replaced with a period before parsing. A field that still is not a number
becomes NaN and the row is kept, so the rate artifact shows what the
source actually published instead of silently losing the row.
"""

import logging
import math
import re
from dataclasses import replace
from typing import Iterable

from etl.dates import normalise_document_date
from etl.markup import attribute, first_tag_value, iter_elements, opening_tag
from etl.models import CurrencyRecord, RateObservation

logger = logging.getLogger(__name__)

DIRECTORY_ENTRY_TAG = "Item"
RATES_ROOT_TAG = "ValCurs"
RATES_ENTRY_TAG = "Valute"

_DECIMAL = re.compile(r"^-?\d+(\.\d+)?$")


def parse_nominal(text: str) -> int | None:
    """Blank means 1 unit; anything non-integer is reported as None."""
    text = text.strip()
    if not text:
        return 1
    try:
        return int(text)
    except ValueError:
        logger.warning("Non-numeric nominal %r", text)
        return None


def parse_decimal(text: str) -> float:
    """Parse "78,5123" / "78.5123" to a float; NaN when blank or not a number."""
    text = text.strip().replace(",", ".")
    if not text:
        return math.nan
    # float() would also take "1_000", "inf" and "nan"
    if not _DECIMAL.match(text):
        logger.warning("Non-numeric rate value %r", text)
        return math.nan
    return float(text)


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------

def extract_currencies(document: str) -> list[CurrencyRecord]:
    """
    One CurrencyRecord per <Item>, in document order.

    Repeated IDs are kept as they are. The live directory publishes the code
    as <ISO_Char_Code>; <CharCode> is read first and the ISO tag is the fallback.
    """
    records = []

    for tag, body in iter_elements(document, DIRECTORY_ENTRY_TAG):
        code = first_tag_value(body, "CharCode") or first_tag_value(body, "ISO_Char_Code")
        records.append(CurrencyRecord(
            id=attribute(tag, "ID"),
            code=code,
            name=first_tag_value(body, "Name"),
            eng_name=first_tag_value(body, "EngName"),
            nominal=parse_nominal(first_tag_value(body, "Nominal")),
            parent_code=first_tag_value(body, "ParentCode"),
        ))

    if not records:
        logger.warning("Directory document holds no <%s> entries", DIRECTORY_ENTRY_TAG)
    else:
        logger.info("Directory extraction done | %d currencies", len(records))

    return records


def flag_tracked(records: Iterable[CurrencyRecord], watchlist: Iterable[str]) -> list[CurrencyRecord]:
    """Copy of ``records`` with ``tracked`` set for codes on the watch-list."""
    watched = set(watchlist)
    return [replace(record, tracked=record.code in watched) for record in records]


# ---------------------------------------------------------------------------
# Daily rates
# ---------------------------------------------------------------------------

def document_date(document: str, requested_date: str) -> str:
    """
    Date the document says it is for, else ``requested_date``.

    On a non-trading day the CBR answers with the previous trading day's
    table; the document's own date wins.
    """
    published = attribute(opening_tag(document, RATES_ROOT_TAG), "Date")
    if not published:
        return requested_date
    return normalise_document_date(published)


def extract_rates(document: str, requested_date: str) -> list[RateObservation]:
    """One RateObservation per <Valute>, in document order."""
    rate_date = document_date(document, requested_date)
    if rate_date != requested_date:
        logger.info("Requested %s, document is dated %s", requested_date, rate_date)

    observations = []
    for _, body in iter_elements(document, RATES_ENTRY_TAG):
        nominal = parse_nominal(first_tag_value(body, "Nominal"))
        value = parse_decimal(first_tag_value(body, "Value"))

        unit_rate_text = first_tag_value(body, "VunitRate")
        if unit_rate_text.strip():
            unit_rate = parse_decimal(unit_rate_text)
        else:
            # Archive tables predating <VunitRate>
            unit_rate = value / nominal if nominal and nominal > 0 else math.nan

        observations.append(RateObservation(
            date=rate_date,
            currency_code=first_tag_value(body, "CharCode"),
            nominal=nominal,
            value=value,
            unit_rate=unit_rate,
        ))

    return observations


def filter_watched(observations: Iterable[RateObservation], watchlist: Iterable[str]) -> list[RateObservation]:
    """Keep watch-list currencies only, preserving order."""
    watched = set(watchlist)
    return [obs for obs in observations if obs.currency_code in watched]
