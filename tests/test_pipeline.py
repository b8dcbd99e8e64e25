"""
Tests for pipeline.py – the fetcher and the sink are in-memory fakes, no API calls.
"""

from datetime import date

import pytest
import requests

from config import PipelineConfig
from pipeline import Pipeline, RunState, config_from_args, parse_args

REFERENCE = date(2026, 10, 17)


class FakeApi:
    """Serves fixed documents by URL; a document that is an exception is raised instead."""

    def __init__(self, documents):
        self.documents = documents
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        document = self.documents[url]
        if isinstance(document, Exception):
            raise document
        return document


class MemorySink(dict):
    def __call__(self, path, text):
        self[path] = text


def _config(**overrides):
    values = dict(
        watchlist=("USD",),
        directory_url="https://cbr.test/valFull",
        daily_rates_url="https://cbr.test/daily",
        currencies_path="currencies.csv",
        rates_path="currency_rates.csv",
        window_days=2,
        request_pause_seconds=0.5,
    )
    values.update(overrides)
    return PipelineConfig(**values)


@pytest.fixture
def api(directory_xml, make_daily_xml):
    return FakeApi({
        "https://cbr.test/valFull": directory_xml,
        "https://cbr.test/daily?date_req=17/10/2026": requests.exceptions.ConnectionError("connection reset"),
        "https://cbr.test/daily?date_req=16/10/2026": make_daily_xml(
            "16.10.2026",
            ("AUD", "1", "53,1020", "53,102"),
            ("USD", "1", "90,1234", "90,1234"),
        ),
    })


def test_failed_day_is_skipped_and_run_succeeds(api):
    sink, pauses = MemorySink(), []
    report = Pipeline(_config(), fetch=api, sink=sink, sleep=pauses.append).run(REFERENCE)

    assert report.succeeded
    assert report.state is RunState.DONE
    assert report.failed_count == 1
    assert report.failures[0].date == "17/10/2026"
    assert "connection reset" in report.failures[0].error
    assert report.summary() == "succeeded with 1/2 dates missing"

    lines = sink["currency_rates.csv"].splitlines()
    assert lines == ["Date,CurrencyCode,Nominal,Value,VunitRate", "16/10/2026,USD,1,90.1234,90.1234"]
    assert report.rates_written == 1


def test_directory_is_flagged(api):
    sink = MemorySink()
    Pipeline(_config(), fetch=api, sink=sink, sleep=lambda s: None).run(REFERENCE)

    rows = sink["currencies.csv"].splitlines()[1:]
    assert [row.rsplit(",", 1)[1] for row in rows] == ["0", "1", "0"]


def test_requests_are_sequential_and_paced(api):
    pauses = []
    Pipeline(_config(), fetch=api, sink=MemorySink(), sleep=pauses.append).run(REFERENCE)

    assert api.calls == [
        "https://cbr.test/valFull",
        "https://cbr.test/daily?date_req=17/10/2026",
        "https://cbr.test/daily?date_req=16/10/2026",
    ]
    # between the two daily requests only, even though the first one failed
    assert pauses == [0.5]


def test_all_window_days_are_attempted(directory_xml, make_daily_xml):
    documents = {"https://cbr.test/valFull": directory_xml}
    for i, day in enumerate(range(17, 7, -1)):
        wire = f"{day:02d}/10/2026"
        documents[f"https://cbr.test/daily?date_req={wire}"] = (
            requests.exceptions.Timeout("timed out") if i % 3 == 0
            else make_daily_xml(f"{day:02d}.10.2026", ("USD", "1", "90,0", "90,0"))
        )
    api, pauses = FakeApi(documents), []

    report = Pipeline(_config(window_days=10), fetch=api, sink=MemorySink(), sleep=pauses.append).run(REFERENCE)

    assert len(api.calls) == 11
    assert len(pauses) == 9
    assert report.failed_count == 4
    assert report.rates_written == 6


def test_extraction_error_is_isolated(api, monkeypatch):
    def broken(document, requested_date):
        raise ValueError("unreadable table")

    monkeypatch.setattr("pipeline.extract_rates", broken)
    report = Pipeline(_config(), fetch=api, sink=MemorySink(), sleep=lambda s: None).run(REFERENCE)

    assert report.succeeded
    assert report.failed_count == 2


def test_directory_failure_is_fatal(api):
    api.documents["https://cbr.test/valFull"] = requests.exceptions.HTTPError("502 Bad Gateway")
    sink = MemorySink()
    pipeline = Pipeline(_config(), fetch=api, sink=sink, sleep=lambda s: None)

    with pytest.raises(requests.exceptions.HTTPError):
        pipeline.run(REFERENCE)

    assert pipeline.state is RunState.FAILED
    assert not pipeline.report.succeeded
    assert "currencies.csv" not in sink
    assert sink == {}
    assert api.calls == ["https://cbr.test/valFull"]


def test_sink_failure_is_fatal(api):
    def failing_sink(path, text):
        raise OSError("disk full")

    pipeline = Pipeline(_config(), fetch=api, sink=failing_sink, sleep=lambda s: None)
    with pytest.raises(OSError):
        pipeline.run(REFERENCE)
    assert pipeline.state is RunState.FAILED


def test_rates_sink_failure_keeps_directory_artifact(api):
    class RatesFail(MemorySink):
        def __call__(self, path, text):
            if path == "currency_rates.csv":
                raise OSError("disk full")
            super().__call__(path, text)

    sink = RatesFail()
    pipeline = Pipeline(_config(), fetch=api, sink=sink, sleep=lambda s: None)
    with pytest.raises(OSError):
        pipeline.run(REFERENCE)

    assert pipeline.state is RunState.FAILED
    assert sink["currencies.csv"].startswith("ID,Code,Name,EngName,Nominal,ParentCode,FlagHistory\n")
    assert "currency_rates.csv" not in sink


def test_injected_empty_sink_is_used(api, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    sink = MemorySink()
    Pipeline(_config(), fetch=api, sink=sink, sleep=lambda s: None).run(REFERENCE)

    assert set(sink) == {"currencies.csv", "currency_rates.csv"}
    assert list(tmp_path.iterdir()) == []


def test_invalid_window_fails_the_run(api):
    pipeline = Pipeline(_config(window_days=0), fetch=api, sink=MemorySink(), sleep=lambda s: None)
    with pytest.raises(ValueError):
        pipeline.run(REFERENCE)

    assert pipeline.state is RunState.FAILED
    assert api.calls == []


def test_reruns_are_byte_identical(api):
    first, second = MemorySink(), MemorySink()
    Pipeline(_config(), fetch=api, sink=first, sleep=lambda s: None).run(REFERENCE)
    Pipeline(_config(), fetch=api, sink=second, sleep=lambda s: None).run(REFERENCE)

    assert set(first) == {"currencies.csv", "currency_rates.csv"}
    assert all(text.count("\n") > 1 for text in first.values())
    assert first == second


def test_pipeline_runs_once(api):
    pipeline = Pipeline(_config(), fetch=api, sink=MemorySink(), sleep=lambda s: None)
    pipeline.run(REFERENCE)
    with pytest.raises(RuntimeError):
        pipeline.run(REFERENCE)


def test_default_window_is_thirty_days(directory_xml, make_daily_xml):
    class AnyDay(FakeApi):
        def __call__(self, url):
            self.calls.append(url)
            if url.endswith("valFull"):
                return directory_xml
            return make_daily_xml("", ("USD", "1", "90,0", "90,0"))

    api = AnyDay({})
    report = Pipeline(
        _config(window_days=30), fetch=api, sink=MemorySink(), sleep=lambda s: None
    ).run(REFERENCE)

    assert report.dates_total == 30
    assert len(api.calls) == 31
    assert report.rates_written == 30


def test_cli_args_build_config():
    args = parse_args(["--reference-date", "2026-02-27", "--watchlist", "usd, eur", "--window-days", "5"])
    config = config_from_args(args)
    assert args.reference_date == date(2026, 2, 27)
    assert config.watchlist == ("USD", "EUR")
    assert config.window_days == 5


def test_daily_rates_url():
    assert PipelineConfig().daily_rates_url_for("01/02/2026") == (
        "https://www.cbr.ru/scripts/XML_daily.asp?date_req=01/02/2026"
    )
