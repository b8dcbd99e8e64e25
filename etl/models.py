"""Records produced by the extraction layer."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CurrencyRecord:
    """One entry of the CBR currency directory."""

    id: str
    code: str
    name: str
    eng_name: str
    nominal: int | None = 1
    parent_code: str = ""
    tracked: bool = False


@dataclass(frozen=True)
class RateObservation:
    """
    One quoted rate for one currency on one day.

    ``value`` is the price of ``nominal`` units; ``unit_rate`` the price of a
    single unit. Either may be NaN when the source text was not a number.
    """

    date: str
    currency_code: str
    nominal: int | None
    value: float
    unit_rate: float
