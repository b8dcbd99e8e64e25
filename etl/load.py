"""
etl/load.py – Load layer.

Renders records as CSV text and writes the two artifacts to local disk.

Artifacts
---------
    currencies.csv                      currency_rates.csv
    ──────────────────────────────      ─────────────────────
    ID                                  Date        (DD/MM/YYYY)
    Code                                CurrencyCode
    Name        (always quoted)         Nominal
    EngName     (always quoted)         Value       (price of Nominal units)
    Nominal                             VunitRate   (price of one unit)
    ParentCode
    FlagHistory (1 = on watch-list)

Quoting
-------
Display names are wrapped in double quotes and any quote inside them is
doubled ("" per RFC 4180). Every other column is written bare, so the
output stays byte-compatible with existing consumers of these files.

Numbers are written locale-invariant: period separator, no grouping, no
exponent. NaN is written as NaN and a missing nominal as an empty field.
"""

import logging
import math
import os
from decimal import Decimal
from typing import Any, Callable, Iterable, Sequence, TypeVar

import polars as pl

from etl.models import CurrencyRecord, RateObservation

logger = logging.getLogger(__name__)

T = TypeVar("T")

CURRENCY_COLUMNS: tuple[str, ...] = ("ID", "Code", "Name", "EngName", "Nominal", "ParentCode", "FlagHistory")
CURRENCY_QUOTED: tuple[str, ...] = ("Name", "EngName")

RATE_COLUMNS: tuple[str, ...] = ("Date", "CurrencyCode", "Nominal", "Value", "VunitRate")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_value(value: Any) -> str:
    """Text form of one cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        # repr() is the shortest round-tripping form; Decimal drops the exponent.
        return format(Decimal(repr(value)), "f")
    return str(value)


def serialize(
    columns: Sequence[str],
    records: Iterable[T],
    accessor: Callable[[T, str], Any],
    quoted: Iterable[str] = (),
) -> str:
    """
    Render ``records`` as CSV text: one header line, then one line per record.

    Parameters
    ----------
    columns  : header, in output order
    records  : rows, written in input order
    accessor : accessor(record, column) -> cell value
    quoted   : columns always wrapped in double quotes (embedded quotes doubled)
    """
    columns = list(columns)
    quoted = [column for column in quoted if column in columns]

    cells: dict[str, list[str]] = {column: [] for column in columns}
    for record in records:
        for column in columns:
            cells[column].append(render_value(accessor(record, column)))

    df = pl.DataFrame(cells, schema={column: pl.String for column in columns})
    if quoted:
        df = df.with_columns([
            pl.concat_str([
                pl.lit('"'),
                pl.col(column).str.replace_all('"', '""', literal=True),
                pl.lit('"'),
            ]).alias(column)
            for column in quoted
        ])

    return df.write_csv(include_header=True, quote_style="never", line_terminator="\n")


def _currency_cell(record: CurrencyRecord, column: str) -> Any:
    return {
        "ID": record.id,
        "Code": record.code,
        "Name": record.name,
        "EngName": record.eng_name,
        "Nominal": record.nominal,
        "ParentCode": record.parent_code,
        "FlagHistory": record.tracked,
    }[column]


def _rate_cell(observation: RateObservation, column: str) -> Any:
    return {
        "Date": observation.date,
        "CurrencyCode": observation.currency_code,
        "Nominal": observation.nominal,
        "Value": observation.value,
        "VunitRate": observation.unit_rate,
    }[column]


def serialize_currencies(records: Iterable[CurrencyRecord]) -> str:
    return serialize(CURRENCY_COLUMNS, records, _currency_cell, quoted=CURRENCY_QUOTED)


def serialize_rates(observations: Iterable[RateObservation]) -> str:
    return serialize(RATE_COLUMNS, observations, _rate_cell)


# ---------------------------------------------------------------------------
# Local sink
# ---------------------------------------------------------------------------

def write_artifact(path: str, text: str) -> None:
    """Overwrite ``path`` with ``text`` (UTF-8). Parent directories are created."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)

    logger.info("Wrote %s (%d lines)", path, text.count("\n"))
