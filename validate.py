"""
validate.py – Runs example queries against the two CSV artifacts and prints results.

Usage
-----
    uv run python validate.py

Purpose
-------
Demonstrates that the artifacts are usable as they are:
  - Row counts and tracked currencies
  - Latest rate per watched currency
  - Window average / min / max unit rate per currency
"""

import duckdb

from config import CURRENCIES_CSV_PATH, RATES_CSV_PATH


def _csv(path: str) -> str:
    """read_csv() call for ``path``, with every column read as text."""
    escaped = path.replace("'", "''")
    return f"read_csv('{escaped}', header = true, all_varchar = true)"


def run_query(conn: duckdb.DuckDBPyConnection, title: str, sql: str) -> None:
    print(f"\n{'=' * 70}")
    print(f"  {title}")
    print(f"{'=' * 70}")
    result = conn.execute(sql).pl()
    print(result)


def main() -> None:
    print(f"Reading: {CURRENCIES_CSV_PATH}")
    print(f"Reading: {RATES_CSV_PATH}")

    currencies = _csv(CURRENCIES_CSV_PATH)
    rates = f"""(
        SELECT
            strptime("Date", '%d/%m/%Y')::DATE      AS rate_date,
            CurrencyCode                            AS currency_code,
            TRY_CAST(Nominal AS INTEGER)            AS nominal,
            TRY_CAST("Value" AS DOUBLE)             AS value,
            TRY_CAST(VunitRate AS DOUBLE)           AS unit_rate
        FROM {_csv(RATES_CSV_PATH)}
    )"""

    with duckdb.connect() as conn:

        # --- Q1: Row counts ---
        run_query(conn, "Q1 – Row counts", f"""
            SELECT
                (SELECT COUNT(*) FROM {currencies})                       AS currencies,
                (SELECT COUNT(*) FROM {currencies} WHERE FlagHistory = '1') AS tracked,
                (SELECT COUNT(DISTINCT rate_date) FROM {rates})           AS dates,
                (SELECT COUNT(*) FROM {rates})                            AS rates
        """)

        # --- Q2: Watch-list entries of the dictionary ---
        run_query(conn, "Q2 – Tracked currencies", f"""
            SELECT ID, Code, EngName, Nominal, ParentCode
            FROM {currencies}
            WHERE FlagHistory = '1'
            ORDER BY Code
        """)

        # --- Q3: Latest rate per currency ---
        run_query(conn, "Q3 – Latest available rate per currency", f"""
            SELECT rate_date, currency_code, nominal, value, unit_rate
            FROM {rates}
            QUALIFY ROW_NUMBER() OVER (PARTITION BY currency_code ORDER BY rate_date DESC) = 1
            ORDER BY currency_code
        """)

        # --- Q4: Window statistics ---
        run_query(conn, "Q4 – Unit rate over the window", f"""
            SELECT
                currency_code,
                MIN(rate_date)              AS window_start,
                MAX(rate_date)              AS window_end,
                ROUND(AVG(unit_rate), 6)    AS avg_unit_rate,
                MIN(unit_rate)              AS min_unit_rate,
                MAX(unit_rate)              AS max_unit_rate
            FROM {rates}
            WHERE NOT isnan(unit_rate)
            GROUP BY currency_code
            ORDER BY currency_code
        """)


if __name__ == "__main__":
    main()
