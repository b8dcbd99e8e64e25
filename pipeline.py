"""
pipeline.py – Entry point for the CBR currency pipeline.

Usage
-----
# Run with defaults (watch-list USD,EUR,GBP,CNY,JPY, window ending today)
    uv run python pipeline.py

# Run for another reference date / watch-list
    uv run python pipeline.py --reference-date 2026-02-27 --watchlist USD,EUR

Flow
----
    Directory → fetch XML_valFull.asp, extract, flag watch-list, write currencies.csv
    Rates     → for each of the 30 window days: fetch XML_daily.asp, extract,
                keep watch-list codes; pause between requests
    Load      → write currency_rates.csv

A failed day is logged and skipped; the run carries on with the next one.
A failed directory fetch or a failed write aborts the run.
"""

import argparse
import logging
import os
import sys
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from functools import partial
from typing import Callable

from config import PipelineConfig
from etl.dates import trailing_window
from etl.extract import fetch_text
from etl.load import serialize_currencies, serialize_rates
from etl.models import RateObservation
from etl.transform import extract_currencies, extract_rates, filter_watched, flag_tracked

# Auto-detect environment:
# If ADLS_CONNECTION_STRING is set we are running inside Azure Functions
# and should write the CSVs to ADLS Gen2.
# Otherwise we are running locally and write to disk.
if os.environ.get("ADLS_CONNECTION_STRING"):
    from etl.load_azure import write_artifact_azure as write_artifact
else:
    from etl.load import write_artifact

# ---------------------------------------------------------------------------
# Logging – structured, timestamped output to stdout
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("pipeline")

Fetcher = Callable[[str], str]
Sink = Callable[[str, str], None]


class RunState(str, Enum):
    IDLE = "idle"
    FETCHING_DIRECTORY = "fetching_directory"
    SERIALIZING_DIRECTORY = "serializing_directory"
    ITERATING_DATES = "iterating_dates"
    PER_DATE_FAILED = "per_date_failed"
    SERIALIZING_RATES = "serializing_rates"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class DateFailure:
    date: str
    error: str


@dataclass
class RunReport:
    """Outcome of one run. Missing days do not fail the run, they are listed here."""

    dates_total: int = 0
    currencies_written: int = 0
    rates_written: int = 0
    failures: list[DateFailure] = field(default_factory=list)
    state: RunState = RunState.IDLE

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.DONE

    def summary(self) -> str:
        if not self.succeeded:
            return f"run {self.state.value}"
        return f"succeeded with {self.failed_count}/{self.dates_total} dates missing"


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class Pipeline:
    """
    Sequential state machine:

        IDLE → FETCHING_DIRECTORY → SERIALIZING_DIRECTORY
             → ITERATING_DATES (⇄ PER_DATE_FAILED) → SERIALIZING_RATES → DONE

    Any error outside the date loop moves the run to FAILED and is re-raised.
    """

    def __init__(
        self,
        config: PipelineConfig,
        fetch: Fetcher | None = None,
        sink: Sink | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.fetch = fetch if fetch is not None else partial(fetch_text, timeout=config.timeout_seconds)
        self.sink = sink if sink is not None else write_artifact
        self.sleep = sleep
        self.state = RunState.IDLE
        self.report = RunReport()

    def _transition(self, state: RunState) -> None:
        logger.debug("State %s → %s", self.state.value, state.value)
        self.state = state
        self.report.state = state

    def run(self, reference: date | datetime | None = None) -> RunReport:
        if self.state is not RunState.IDLE:
            raise RuntimeError("a Pipeline instance runs only once")

        try:
            # Computed once: a run that spans midnight keeps its original window.
            window = trailing_window(reference or date.today(), self.config.window_days)
            self.report.dates_total = len(window)

            self._load_directory()
            observations = self._collect_rates(window)
            self._transition(RunState.SERIALIZING_RATES)
            logger.info("[3/3] Writing rate history...")
            self.sink(self.config.rates_path, serialize_rates(observations))
            self.report.rates_written = len(observations)
        except Exception:
            failed_in = self.state
            self._transition(RunState.FAILED)
            logger.exception("Pipeline aborted during %s", failed_in.value)
            raise

        self._transition(RunState.DONE)
        return self.report

    def _load_directory(self) -> None:
        self._transition(RunState.FETCHING_DIRECTORY)
        logger.info("[1/3] Loading currency directory...")
        document = self.fetch(self.config.directory_url)
        currencies = flag_tracked(extract_currencies(document), self.config.watchlist)

        self._transition(RunState.SERIALIZING_DIRECTORY)
        self.sink(self.config.currencies_path, serialize_currencies(currencies))
        self.report.currencies_written = len(currencies)
        logger.info(
            "Directory written | %d currencies | %d on watch-list",
            len(currencies),
            sum(record.tracked for record in currencies),
        )

    def _collect_rates(self, window) -> list[RateObservation]:
        self._transition(RunState.ITERATING_DATES)
        logger.info("[2/3] Loading daily rates for %s → %s...", window[0].wire, window[-1].wire)
        accumulated: list[RateObservation] = []

        for i, entry in enumerate(window):
            if i:
                self.sleep(self.config.request_pause_seconds)

            logger.info("Loading rates for %s (%d/%d)", entry.wire, i + 1, len(window))
            try:
                document = self.fetch(self.config.daily_rates_url_for(entry.wire))
                rates = filter_watched(extract_rates(document, entry.wire), self.config.watchlist)
            except Exception as exc:
                self._transition(RunState.PER_DATE_FAILED)
                logger.error("Failed to load rates for %s: %s", entry.wire, exc)
                self.report.failures.append(DateFailure(date=entry.wire, error=str(exc) or type(exc).__name__))
                self._transition(RunState.ITERATING_DATES)
                continue

            accumulated.extend(rates)

        return accumulated


def run(config: PipelineConfig | None = None, reference: date | datetime | None = None) -> RunReport:
    config = config or PipelineConfig()

    logger.info("=" * 60)
    logger.info("CBR Pipeline starting | watch-list %s | %d days", ",".join(config.watchlist), config.window_days)
    logger.info("=" * 60)

    t0 = time.perf_counter()
    report = Pipeline(config).run(reference)

    elapsed = time.perf_counter() - t0
    logger.info("=" * 60)
    logger.info(
        "Pipeline complete in %.2fs | %d currencies | %d rates | %s",
        elapsed, report.currencies_written, report.rates_written, report.summary(),
    )
    for failure in report.failures:
        logger.warning("Missing %s: %s", failure.date, failure.error)
    logger.info("=" * 60)
    return report


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    defaults = PipelineConfig()
    parser = argparse.ArgumentParser(
        description="CBR currency pipeline – writes the currency dictionary and a rate history CSV."
    )
    parser.add_argument(
        "--reference-date",
        type=date.fromisoformat,
        default=None,
        help="Last day of the window in YYYY-MM-DD format (default: today)",
    )
    parser.add_argument(
        "--window-days",
        type=int,
        default=defaults.window_days,
        help=f"Number of calendar days to fetch (default: {defaults.window_days})",
    )
    parser.add_argument(
        "--watchlist",
        default=",".join(defaults.watchlist),
        help=f"Comma-separated currency codes (default: {','.join(defaults.watchlist)})",
    )
    parser.add_argument("--currencies-path", default=defaults.currencies_path)
    parser.add_argument("--rates-path", default=defaults.rates_path)
    parser.add_argument(
        "--pause",
        type=float,
        default=defaults.request_pause_seconds,
        help=f"Seconds between daily requests (default: {defaults.request_pause_seconds})",
    )
    parser.add_argument("--timeout", type=int, default=defaults.timeout_seconds)
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        watchlist=tuple(args.watchlist.split(",")),
        currencies_path=args.currencies_path,
        rates_path=args.rates_path,
        window_days=args.window_days,
        request_pause_seconds=args.pause,
        timeout_seconds=args.timeout,
    )


if __name__ == "__main__":
    args = parse_args()
    run(config_from_args(args), args.reference_date)
