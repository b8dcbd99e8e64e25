"""
config.py – Central configuration for the CBR currency pipeline.
All tuneable parameters live here so nothing is hard-coded elsewhere.

The module-level constants are the defaults; the pipeline itself only ever
sees an immutable PipelineConfig built from them (optionally overridden by
CLI arguments in pipeline.py).
"""

import os
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Watch-list
# Historical rates are collected only for these codes. The dictionary
# artifact flags them with FlagHistory = 1.
# ---------------------------------------------------------------------------
WATCHLIST: tuple[str, ...] = ("USD", "EUR", "GBP", "CNY", "JPY")

# ---------------------------------------------------------------------------
# Data source – Central Bank of Russia XML API (https://www.cbr.ru/development/SXML/)
# Free, no API key. Documents are served as windows-1251 XML with decimal commas.
# ---------------------------------------------------------------------------
DIRECTORY_URL: str = "https://www.cbr.ru/scripts/XML_valFull.asp"
DAILY_RATES_URL: str = "https://www.cbr.ru/scripts/XML_daily.asp"
DAILY_RATES_DATE_PARAM: str = "date_req"
API_TIMEOUT_SECONDS: int = 30

# Pause between two consecutive daily-rates requests. The CBR starts refusing
# clients that hammer the endpoint, so the date loop is strictly sequential.
REQUEST_PAUSE_SECONDS: float = 0.5

# ---------------------------------------------------------------------------
# Trailing window: today plus the 29 preceding calendar days.
# ---------------------------------------------------------------------------
WINDOW_DAYS: int = 30

# ---------------------------------------------------------------------------
# Output artifacts – CSV files sitting next to this config.
# ---------------------------------------------------------------------------
CURRENCIES_CSV_PATH: str = os.path.join(os.path.dirname(__file__), "currencies.csv")
RATES_CSV_PATH: str = os.path.join(os.path.dirname(__file__), "currency_rates.csv")


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable run configuration handed to the pipeline at construction."""

    watchlist: tuple[str, ...] = WATCHLIST
    directory_url: str = DIRECTORY_URL
    daily_rates_url: str = DAILY_RATES_URL
    daily_rates_date_param: str = DAILY_RATES_DATE_PARAM
    currencies_path: str = CURRENCIES_CSV_PATH
    rates_path: str = RATES_CSV_PATH
    window_days: int = WINDOW_DAYS
    request_pause_seconds: float = REQUEST_PAUSE_SECONDS
    timeout_seconds: int = API_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        # Accept any iterable of codes but store an ordered, de-duplicated tuple.
        codes = tuple(dict.fromkeys(code.strip().upper() for code in self.watchlist if code.strip()))
        object.__setattr__(self, "watchlist", codes)

    def daily_rates_url_for(self, wire_date: str) -> str:
        """Daily-rates URL for one DD/MM/YYYY date, e.g. ...XML_daily.asp?date_req=01/02/2026"""
        return f"{self.daily_rates_url}?{self.daily_rates_date_param}={wire_date}"
